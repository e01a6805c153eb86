"""
RequestContext management.
Use ContextVar to share the current invocation identity with the log formatter.
"""

from contextvars import ContextVar
from typing import Optional


# Context variable for Trace ID (raw header value from the platform).
_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
# Context variable for the invocation identifier.
_invocation_id_var: ContextVar[Optional[str]] = ContextVar("invocation_id", default=None)


def get_trace_id() -> Optional[str]:
    """Get the current Trace ID."""
    return _trace_id_var.get()


def get_invocation_id() -> Optional[str]:
    """Get the current invocation ID."""
    return _invocation_id_var.get()


def bind_invocation(invocation_id: str, trace_id: Optional[str] = None) -> None:
    """
    Bind an invocation to the current context.

    Args:
        invocation_id: Identifier supplied by the platform
        trace_id: Trace header value, if the platform sent one
    """
    _invocation_id_var.set(invocation_id)
    _trace_id_var.set(trace_id.strip() if trace_id else None)


def clear_invocation() -> None:
    """Clear the invocation context."""
    _trace_id_var.set(None)
    _invocation_id_var.set(None)
