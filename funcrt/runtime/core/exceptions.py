"""
Custom exception classes.

Represent errors raised while talking to the runtime endpoint or running the handler.
Only InitializationError is allowed to end the process.
"""

from typing import Optional


class RuntimeAdapterError(Exception):
    """Base exception class for the runtime adapter."""

    pass


class TransportError(RuntimeAdapterError):
    """Raised when the runtime endpoint cannot be reached (refused, timeout, reset)."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Transport failure during {operation}: {type(cause).__name__}: {cause}")


class ProtocolError(RuntimeAdapterError):
    """Raised when the runtime endpoint answers outside its contract."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"Protocol error ({status_code}): {detail}")
        else:
            super().__init__(f"Protocol error: {detail}")


class HandlerError(RuntimeAdapterError):
    """
    Failure of the user handler.

    Handlers may raise this directly; any other exception is wrapped by the adapter.
    """

    error_type = "HandlerError"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InitializationError(RuntimeAdapterError):
    """Raised when cold-start setup fails. Fatal."""

    error_type = "InitializationError"

    def __init__(self, detail: str, cause: Optional[BaseException] = None):
        self.detail = detail
        self.cause = cause
        super().__init__(f"Initialization failed: {detail}")
