"""
Execution context models.

ExecutionContext lives for the whole execution environment (cold start until
the platform recycles the process). InvocationContext is the per-invocation
view handed to the user handler.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from funcrt.runtime.config import RuntimeConfig


class SharedState:
    """
    Internally synchronized key/value container shared across invocations.

    Sync handlers run on a worker thread, so every access takes the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def pop(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.pop(key, default)

    def increment(self, key: str, amount: int = 1) -> int:
        with self._lock:
            value = self._data.get(key, 0) + amount
            self._data[key] = value
            return value

    def update(self, key: str, func: Callable[[Any], Any], default: Any = None) -> Any:
        """Apply func to the current value under the lock and store the result."""
        with self._lock:
            value = func(self._data.get(key, default))
            self._data[key] = value
            return value

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


@dataclass(eq=False)
class ExecutionContext:
    """
    Process-wide state built once in the Initializing phase.

    Owned by the invocation loop. Handlers receive a reference through
    InvocationContext.execution and must treat the attributes as read-only;
    mutable cross-invocation data belongs in `state`.
    """

    config: RuntimeConfig
    handler: Callable[..., Any]
    resources: Any = None
    state: SharedState = field(default_factory=SharedState)
    cold_start_at: float = field(default_factory=time.time)
    invocation_count: int = 0

    @property
    def function_name(self) -> Optional[str]:
        return self.config.FUNCTION_NAME


@dataclass
class InvocationContext:
    """Second argument of every handler call."""

    invocation_id: str
    deadline_ms: int
    execution: ExecutionContext
    trace_id: Optional[str] = None
    function_name: Optional[str] = None

    @property
    def cold_start(self) -> bool:
        """True for the first invocation served by this environment."""
        return self.execution.invocation_count == 1

    def get_remaining_time_in_millis(self) -> int:
        return max(0, self.deadline_ms - int(time.time() * 1000))
