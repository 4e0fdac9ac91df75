"""
Unit Tests for Custom Exceptions

Tests cover:
- Exception hierarchy
- retry_allowed flag behavior
- Exception attributes
"""

import pytest

from xray.core.exceptions import (
    BadInputError,
    ConcurrentWriteError,
    ConflictError,
    ConflictingStateError,
    IdCollisionError,
    InternalError,
    NotFoundError,
    OperationCancelledError,
    XRayException,
)


@pytest.mark.unit
def test_xray_exception_base():
    """Test XRayException base class defaults to no retry"""
    exc = XRayException("Test error")

    assert str(exc) == "Test error"
    assert exc.message == "Test error"
    assert exc.retry_allowed is False


@pytest.mark.unit
def test_not_found_error():
    exc = NotFoundError("exec_deadbeef")

    assert isinstance(exc, XRayException)
    assert exc.execution_id == "exec_deadbeef"
    assert "exec_deadbeef" in str(exc)
    assert exc.retry_allowed is False


@pytest.mark.unit
def test_bad_input_error_keeps_field():
    exc = BadInputError("stepName must be a non-empty string", field="stepName")

    assert exc.field == "stepName"
    assert exc.retry_allowed is False


@pytest.mark.unit
def test_conflicting_state_error():
    exc = ConflictingStateError("exec_12345678", "COMPLETED")

    assert exc.execution_id == "exec_12345678"
    assert exc.status == "COMPLETED"
    assert "already terminal" in str(exc)


@pytest.mark.unit
@pytest.mark.parametrize("exc_type", [IdCollisionError, ConcurrentWriteError])
def test_conflicts_allow_retry(exc_type):
    exc = exc_type("conflict")

    assert isinstance(exc, ConflictError)
    assert exc.retry_allowed is True


@pytest.mark.unit
def test_cancelled_error_default_message():
    exc = OperationCancelledError()

    assert "cancelled" in exc.message.lower()
    assert exc.retry_allowed is False


@pytest.mark.unit
def test_internal_error_carries_correlation_id():
    exc = InternalError("Store failure: OperationalError", correlation_id="req-123")

    assert exc.correlation_id == "req-123"
    assert exc.retry_allowed is True
