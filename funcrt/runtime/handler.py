"""
Handler Adapter

Resolves the user handler and runs it for one invocation, converting every
outcome into an InvocationResult.
"""

import asyncio
import importlib
import inspect
import json
import logging
import os
import sys
import traceback
from types import ModuleType
from typing import Any, Callable, Optional, Tuple

from funcrt.common.core.output_capture import capture_output

from .core.exceptions import HandlerError, InitializationError
from .models.context import ExecutionContext, InvocationContext
from .models.invocation import Invocation
from .models.result import InvocationError, InvocationResult

logger = logging.getLogger("funcrt.handler")

INVALID_EVENT_PAYLOAD = "InvalidEventPayload"
RESPONSE_SERIALIZATION_ERROR = "ResponseSerializationError"


def load_handler(handler_spec: str, task_root: str = ".") -> Tuple[ModuleType, Callable[..., Any]]:
    """
    Import the handler module and return (module, handler function).

    Args:
        handler_spec: "module.function"; path separators in the module part are allowed
        task_root: Directory prepended to sys.path before importing

    Raises:
        InitializationError: The module cannot be imported or the attribute is not callable
    """
    module_name, _, func_name = handler_spec.rpartition(".")
    if not module_name or not func_name:
        raise InitializationError(f"malformed handler {handler_spec!r}")
    module_name = module_name.replace("/", ".")

    root = os.path.abspath(task_root)
    if root not in sys.path:
        sys.path.insert(0, root)

    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        raise InitializationError(f"cannot import module {module_name!r}: {e}", cause=e) from e

    handler = getattr(module, func_name, None)
    if handler is None:
        raise InitializationError(f"handler {func_name!r} not found in module {module_name!r}")
    if not callable(handler):
        raise InitializationError(f"handler {handler_spec!r} is not callable")

    return module, handler


def error_from_exception(exc: BaseException) -> InvocationError:
    """Convert a handler failure into the structured error reported to the platform."""
    if isinstance(exc, HandlerError):
        error_type = exc.error_type
        message = exc.message
    elif isinstance(exc, SystemExit):
        error_type = HandlerError.error_type
        message = f"Handler exited with code {exc.code}"
    else:
        error_type = HandlerError.error_type
        message = str(exc) or type(exc).__name__

    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return InvocationError(
        error_type=error_type,
        error_message=message,
        exception_type=type(exc).__name__,
        stack_trace=[line.rstrip("\n") for line in stack],
    )


def decode_event(payload: bytes) -> Any:
    """Decode the raw event body. An empty body becomes None."""
    if not payload or not payload.strip():
        return None
    return json.loads(payload)


def encode_result(value: Any) -> bytes:
    """Encode a handler return value as the success payload."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    # NaN and Infinity are not JSON; reject them instead of posting a malformed body.
    return json.dumps(
        value, ensure_ascii=False, allow_nan=False, separators=(",", ":")
    ).encode("utf-8")


class HandlerAdapter:
    """
    Runs the user handler for one invocation.

    The handler is called as handler(event, context). Coroutine functions are
    awaited; plain functions run on a worker thread. Either way the call has
    fully resolved when invoke() returns.
    """

    def __init__(self, capture_handler_output: bool = True):
        self.capture_handler_output = capture_handler_output

    async def invoke(
        self,
        context: ExecutionContext,
        payload: bytes,
        invocation: Optional[Invocation] = None,
    ) -> InvocationResult:
        try:
            event = decode_event(payload)
        except (ValueError, RecursionError) as e:
            logger.warning("Event payload is not valid JSON: %s", e)
            return InvocationResult.failure(
                InvocationError(
                    error_type=INVALID_EVENT_PAYLOAD,
                    error_message=f"Event payload is not valid JSON: {e}",
                    exception_type=type(e).__name__,
                )
            )

        invocation_context = InvocationContext(
            invocation_id=invocation.invocation_id if invocation else "",
            deadline_ms=invocation.deadline_ms if invocation else 0,
            trace_id=invocation.trace_id if invocation else None,
            function_name=context.function_name,
            execution=context,
        )

        try:
            with capture_output(self.capture_handler_output):
                value = await self._call(context.handler, event, invocation_context)
        except KeyboardInterrupt:
            raise
        except BaseException as e:
            # The loop never cancels a running invoke, so CancelledError here
            # comes from inside the handler.
            logger.error(
                "Handler raised %s: %s",
                type(e).__name__,
                e,
                exc_info=True,
                extra={"error_type": type(e).__name__},
            )
            return InvocationResult.failure(error_from_exception(e))

        # Handlers may also signal failure by returning an exception instance.
        if isinstance(value, BaseException):
            logger.error("Handler returned error %s: %s", type(value).__name__, value)
            return InvocationResult.failure(error_from_exception(value))

        try:
            return InvocationResult.ok(encode_result(value))
        except (TypeError, ValueError, RecursionError) as e:
            logger.error("Handler result is not JSON serializable: %s", e)
            return InvocationResult.failure(
                InvocationError(
                    error_type=RESPONSE_SERIALIZATION_ERROR,
                    error_message=f"Unable to serialize handler result: {e}",
                    exception_type=type(e).__name__,
                )
            )

    @staticmethod
    async def _call(handler: Callable[..., Any], event: Any, context: InvocationContext) -> Any:
        if inspect.iscoroutinefunction(handler):
            return await handler(event, context)

        value = await asyncio.to_thread(handler, event, context)
        if inspect.isawaitable(value):
            value = await value
        return value
