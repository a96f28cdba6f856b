"""
Tagged error values returned by every fallible fact query.

Public operations never raise for kernel or resolver failures.  They return
a :class:`FactResult` whose ``error`` is ``None`` on success, or a
:class:`FactError` carrying one of three kinds:

* ``SYSTEM`` — the platform reported an errno-style ``code``;
* ``NOT_IMPLEMENTED`` — the facility does not exist on this platform;
* ``DEGRADED`` — a value *was* produced but only by falling back to a
  lesser source; ``sentinel`` holds what was used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")

# Reserved "no measurement" value for numeric fields, distinct from 0 and
# from RLIM_INFINITY (which Python reports as -1 on Linux).
FIELD_NOTIMPL = 2**64 - 1

_NOTIMPL_MESSAGE = "This function has not been implemented on this platform"


class ErrorKind(Enum):
    SYSTEM = "system"
    NOT_IMPLEMENTED = "not_implemented"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class FactError:
    kind: ErrorKind
    code: int = 0
    message: str = ""
    sentinel: Any = None

    @classmethod
    def system(cls, code: Optional[int], message: str = "") -> "FactError":
        code = code or 0
        return cls(ErrorKind.SYSTEM, code=code, message=message or strerror(code))

    @classmethod
    def from_oserror(cls, exc: OSError) -> "FactError":
        return cls.system(exc.errno, exc.strerror or str(exc))

    @classmethod
    def not_implemented(cls) -> "FactError":
        return cls(ErrorKind.NOT_IMPLEMENTED, message=_NOTIMPL_MESSAGE)

    @classmethod
    def degraded(cls, sentinel: Any, message: str = "") -> "FactError":
        return cls(ErrorKind.DEGRADED, message=message, sentinel=sentinel)


@dataclass(frozen=True)
class FactResult(Generic[T]):
    """Value-or-error container; check :attr:`ok` before trusting :attr:`value`."""

    value: Optional[T] = None
    error: Optional[FactError] = None

    @property
    def ok(self) -> bool:
        return self.error is None or self.error.kind is ErrorKind.DEGRADED

    @property
    def degraded(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.DEGRADED

    @classmethod
    def success(cls, value: T) -> "FactResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FactError) -> "FactResult[T]":
        return cls(error=error)

    @classmethod
    def not_implemented(cls) -> "FactResult[T]":
        return cls(error=FactError.not_implemented())


def strerror(err: Union[int, FactError]) -> str:
    """Translate an errno or a :class:`FactError` into a human string."""
    if isinstance(err, FactError):
        if err.kind is ErrorKind.NOT_IMPLEMENTED:
            return _NOTIMPL_MESSAGE
        if err.kind is ErrorKind.DEGRADED:
            return err.message or f"Degraded result: {err.sentinel}"
        return err.message or strerror(err.code)
    if not err:
        return "Success"
    try:
        return os.strerror(err)
    except ValueError:
        return "Unknown Error"
