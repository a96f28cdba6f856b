"""
Growable collection — the container behind every "list of N facts" result.

Capacity grows in fixed chunks rather than by a multiplicative factor, so a
collection that has seen *N* insertions always has a capacity of
``chunk * ceil(N / chunk)``.  Collections are write-once, read-many
snapshots: there is no removal API and insertion order is preserved.
"""

from __future__ import annotations

from typing import Generic, Iterator, List, TypeVar

T = TypeVar("T")


class GrowableCollection(Generic[T]):
    """Append-only buffer with chunked capacity growth."""

    def __init__(self, chunk: int) -> None:
        if chunk <= 0:
            raise ValueError(f"chunk size must be positive, got {chunk}")
        self._chunk = chunk
        self._count = 0
        self._capacity = chunk
        self._data: List[T] = []

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def chunk(self) -> int:
        return self._chunk

    @property
    def count(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return self._capacity

    # ── Core API ──────────────────────────────────────────────────────────

    def grow(self) -> None:
        """Extend capacity by exactly one chunk, keeping existing elements."""
        self._capacity += self._chunk

    def append(self, item: T) -> None:
        """Insert *item* at the end, growing by one chunk when full."""
        if self._count == self._capacity:
            self.grow()
        self._data.append(item)
        self._count += 1

    def extend(self, items) -> None:
        for item in items:
            self.append(item)

    def destroy(self) -> None:
        """Release storage.  Safe to call any number of times."""
        if self._capacity:
            self._data = []
            self._count = self._capacity = 0

    def to_list(self) -> List[T]:
        return list(self._data)

    # ── Read-only container protocol ──────────────────────────────────────

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        return iter(self._data)

    def __getitem__(self, index: int) -> T:
        return self._data[index]

    def __bool__(self) -> bool:
        return self._count > 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={self._count}, capacity={self._capacity}, chunk={self._chunk})"
