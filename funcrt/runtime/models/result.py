"""
Invocation result models.

Standardizes the output of the handler adapter for the response reporter.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class InvocationError(BaseModel):
    """Structured handler failure."""

    error_type: str = Field(..., description="Error kind reported as errorType")
    error_message: str = Field(default="", description="Human readable message")
    exception_type: Optional[str] = Field(None, description="Python class of the failure")
    stack_trace: List[str] = Field(default_factory=list)

    def to_body(self, include_stack_trace: bool = False) -> Dict[str, Any]:
        """Build the JSON body posted to the error endpoint."""
        body: Dict[str, Any] = {
            "errorType": self.error_type,
            "errorMessage": self.error_message,
        }
        if include_stack_trace and self.stack_trace:
            body["stackTrace"] = self.stack_trace
        return body


class InvocationResult(BaseModel):
    """
    Outcome of one handler call: either a success payload or an error.
    """

    payload: bytes = b""
    error: Optional[InvocationError] = None

    @classmethod
    def ok(cls, payload: bytes) -> "InvocationResult":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: InvocationError) -> "InvocationResult":
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.error is None
