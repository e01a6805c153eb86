"""
Core logic package.

Provides the runtime adapter's error taxonomy.
"""

from .exceptions import (
    HandlerError,
    InitializationError,
    ProtocolError,
    RuntimeAdapterError,
    TransportError,
)

__all__ = [
    "HandlerError",
    "InitializationError",
    "ProtocolError",
    "RuntimeAdapterError",
    "TransportError",
]
