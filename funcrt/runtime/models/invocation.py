"""
Invocation models.

One request cycle as delivered by the runtime endpoint.
"""

import time
from typing import Optional

from pydantic import BaseModel, Field


class Invocation(BaseModel):
    """
    An event received from the next-invocation endpoint.
    """

    invocation_id: str = Field(..., min_length=1, description="Opaque id supplied by the platform")
    deadline_ms: int = Field(..., description="Deadline as epoch milliseconds")
    trace_id: Optional[str] = Field(None, description="Trace header value")
    payload: bytes = Field(default=b"", description="Raw event body")

    def remaining_time_ms(self, now: Optional[float] = None) -> int:
        """Milliseconds left before the platform deadline (never negative)."""
        now_ms = int((time.time() if now is None else now) * 1000)
        return max(0, self.deadline_ms - now_ms)
