"""
Data model definitions package.

Aggregates the invocation, context and result models used by the runtime loop.
"""

from .context import ExecutionContext, InvocationContext, SharedState
from .invocation import Invocation
from .result import InvocationError, InvocationResult

__all__ = [
    "ExecutionContext",
    "InvocationContext",
    "SharedState",
    "Invocation",
    "InvocationError",
    "InvocationResult",
]
