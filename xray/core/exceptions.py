"""
Custom Exceptions for X-Ray

Exception Hierarchy:
- XRayException (base)
  - NotFoundError (don't retry)
  - BadInputError (don't retry)
  - ConflictingStateError (don't retry)
  - ConflictError (retry)
    - IdCollisionError (retry with a fresh id)
    - ConcurrentWriteError (retry with a fresh read)
  - OperationCancelledError (don't retry)
  - InternalError (retry)
"""

from typing import Optional


class XRayException(Exception):
    """Base exception for all X-Ray errors"""

    def __init__(self, message: str, retry_allowed: bool = False):
        super().__init__(message)
        self.message = message
        self.retry_allowed = retry_allowed


class NotFoundError(XRayException):
    """Requested execution does not exist."""

    def __init__(self, execution_id: str):
        super().__init__(f"Execution not found: {execution_id}")
        self.execution_id = execution_id


class BadInputError(XRayException):
    """
    Producer supplied a value that cannot be traced
    (unencodable JSON value, empty step name).
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictingStateError(XRayException):
    """
    Mutation of an execution that is already terminal
    (double end, step after end). Programmer error.
    """

    def __init__(self, execution_id: str, status: str):
        super().__init__(
            f"Execution {execution_id} is already terminal (status: {status})"
        )
        self.execution_id = execution_id
        self.status = status


class ConflictError(XRayException):
    """Write rejected by the store. Retried internally by the tracer."""

    def __init__(self, message: str):
        super().__init__(message, retry_allowed=True)


class IdCollisionError(ConflictError):
    """Generated identifier already exists in the store."""
    pass


class ConcurrentWriteError(ConflictError):
    """Another transaction modified the aggregate first."""
    pass


class OperationCancelledError(XRayException):
    """Caller cancelled the operation before it committed."""

    def __init__(self, message: str = "Operation cancelled by caller"):
        super().__init__(message)


class InternalError(XRayException):
    """
    Store or encoder failure not classified above.
    Carries a correlation id that also appears in the error log line.
    """

    def __init__(self, message: str, correlation_id: str):
        super().__init__(message, retry_allowed=True)
        self.correlation_id = correlation_id
