"""
Tests for the tagged error values and strerror().
"""

import errno

from hostfacts.core.errors import FIELD_NOTIMPL, ErrorKind, FactError, FactResult, strerror


def test_success_is_ok():
    result = FactResult.success(42)
    assert result.ok
    assert not result.degraded
    assert result.value == 42


def test_system_error_carries_code():
    result = FactResult.failure(FactError.system(errno.ENODEV))
    assert not result.ok
    assert result.error.kind is ErrorKind.SYSTEM
    assert result.error.code == errno.ENODEV
    assert strerror(result.error) == strerror(errno.ENODEV)


def test_from_oserror():
    err = FactError.from_oserror(OSError(errno.EACCES, "Permission denied"))
    assert err.kind is ErrorKind.SYSTEM
    assert err.code == errno.EACCES
    assert err.message == "Permission denied"


def test_not_implemented_message():
    result = FactResult.not_implemented()
    assert not result.ok
    assert result.error.kind is ErrorKind.NOT_IMPLEMENTED
    assert strerror(result.error) == "This function has not been implemented on this platform"


def test_degraded_is_still_ok():
    result = FactResult(value="10.0.0.5", error=FactError.degraded("10.0.0.5"))
    assert result.ok
    assert result.degraded
    assert result.error.sentinel == "10.0.0.5"


def test_strerror_int_codes():
    assert strerror(0) == "Success"
    assert strerror(errno.ENOENT)  # platform wording varies


def test_notimpl_sentinel_is_distinct():
    assert FIELD_NOTIMPL not in (0, -1)
