"""
Invocation Loop

Drives Initializing -> Polling -> Invoking -> Reporting -> Polling for the
lifetime of the execution environment. Invocations are strictly sequential.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from funcrt.common.core.logging_config import flush_handlers
from funcrt.common.core.request_context import bind_invocation, clear_invocation

from .clients import EventClient, ResponseReporter
from .config import RuntimeConfig
from .core.exceptions import InitializationError, ProtocolError, TransportError
from .handler import HandlerAdapter, load_handler
from .models.context import ExecutionContext
from .models.invocation import Invocation
from .models.result import InvocationError, InvocationResult

logger = logging.getLogger("funcrt.loop")


class LoopState(str, Enum):
    INITIALIZING = "initializing"
    POLLING = "polling"
    INVOKING = "invoking"
    REPORTING = "reporting"
    STOPPED = "stopped"


class InvocationLoop:
    def __init__(
        self,
        config: RuntimeConfig,
        event_client: EventClient,
        reporter: ResponseReporter,
        adapter: HandlerAdapter,
        handler: Optional[Callable[..., Any]] = None,
        init_hook: Optional[Callable[[ExecutionContext], Any]] = None,
    ):
        """
        Args:
            config: RuntimeConfig instance
            event_client: Long-poll client for the next invocation
            reporter: Result/error reporter
            adapter: HandlerAdapter instance
            handler: Handler callable; when omitted it is loaded from config.HANDLER
            init_hook: Cold-start hook; when omitted it is looked up in the handler module
        """
        self.config = config
        self.event_client = event_client
        self.reporter = reporter
        self.adapter = adapter
        self._handler = handler
        self._init_hook = init_hook

        self.state = LoopState.INITIALIZING
        self.execution_context: Optional[ExecutionContext] = None
        self.stats: Dict[str, int] = {
            "invocations": 0,
            "succeeded": 0,
            "failed": 0,
            "report_errors": 0,
            "poll_errors": 0,
        }

        self._initialized = False
        self._stop_requested = False
        self._poll_task: Optional[asyncio.Future] = None

    # ------------------------------------------------------------------
    # Initializing
    # ------------------------------------------------------------------

    async def initialize(self) -> ExecutionContext:
        """
        Build the ExecutionContext. Runs once per process.

        Raises:
            InitializationError: Handler could not be loaded or the init hook failed
        """
        if self._initialized:
            raise RuntimeError("InvocationLoop.initialize() may only run once per process")
        self._initialized = True
        self.state = LoopState.INITIALIZING

        try:
            context = await self._build_context()
        except InitializationError as e:
            await self._report_init_failure(e)
            raise
        except Exception as e:
            error = InitializationError(f"init hook failed: {e}", cause=e)
            await self._report_init_failure(error)
            raise error from e

        self.execution_context = context
        self.state = LoopState.POLLING
        logger.info(
            "Execution environment initialized",
            extra={"handler": self.config.HANDLER or getattr(context.handler, "__name__", None)},
        )
        return context

    async def _build_context(self) -> ExecutionContext:
        handler = self._handler
        init_hook = self._init_hook

        if handler is None:
            if not self.config.HANDLER:
                raise InitializationError("no handler configured (set HANDLER)")
            module, handler = load_handler(self.config.HANDLER, self.config.TASK_ROOT)
            if init_hook is None:
                candidate = getattr(module, self.config.INIT_FUNCTION, None)
                if callable(candidate):
                    init_hook = candidate

        context = ExecutionContext(config=self.config, handler=handler)
        if init_hook is not None:
            logger.info("Running init hook %s", getattr(init_hook, "__name__", init_hook))
            resources = init_hook(context)
            if inspect.isawaitable(resources):
                resources = await resources
            context.resources = resources
        return context

    async def _report_init_failure(self, error: InitializationError) -> None:
        if not self.config.REPORT_INIT_ERROR:
            return
        try:
            await self.reporter.report_init_failure(
                InvocationError(
                    error_type=InitializationError.error_type,
                    error_message=str(error),
                    exception_type=type(error.cause).__name__ if error.cause else None,
                )
            )
        except (TransportError, ProtocolError) as e:
            logger.warning("Could not report initialization failure: %s", e)

    # ------------------------------------------------------------------
    # Polling / Invoking / Reporting
    # ------------------------------------------------------------------

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Loop until stop() is requested (or max_cycles cycles have run).
        """
        if self.execution_context is None:
            await self.initialize()

        cycles = 0
        while not self._stop_requested:
            if max_cycles is not None and cycles >= max_cycles:
                break
            await self.run_once()
            cycles += 1

        self.state = LoopState.STOPPED
        logger.info("Invocation loop stopped", extra={"stats": dict(self.stats)})

    async def run_once(self) -> bool:
        """
        Run one poll/invoke/report cycle.

        Returns:
            True if an invocation was processed, False if the cycle ended early
        """
        if self.execution_context is None:
            raise RuntimeError("run_once() called before initialize()")

        self.state = LoopState.POLLING
        try:
            invocation = await self._poll()
        except asyncio.CancelledError:
            if self._stop_requested:
                return False
            raise
        except TransportError as e:
            self.stats["poll_errors"] += 1
            logger.error(
                "TransportError while polling for the next invocation: %s",
                e,
                extra={"error_type": type(e.cause).__name__},
            )
            await asyncio.sleep(self.config.TRANSPORT_RETRY_DELAY)
            return False
        except ProtocolError as e:
            self.stats["poll_errors"] += 1
            logger.error(
                "ProtocolError from the runtime endpoint: %s",
                e,
                extra={"status_code": e.status_code},
            )
            await asyncio.sleep(self.config.PROTOCOL_ERROR_BACKOFF)
            return False

        await self._process(invocation)
        return True

    async def _poll(self) -> Invocation:
        self._poll_task = asyncio.ensure_future(self.event_client.next_invocation())
        try:
            return await self._poll_task
        finally:
            self._poll_task = None

    async def _process(self, invocation: Invocation) -> None:
        context = self.execution_context
        bind_invocation(invocation.invocation_id, invocation.trace_id)
        try:
            self.state = LoopState.INVOKING
            context.invocation_count += 1
            self.stats["invocations"] += 1
            logger.info(
                "Invocation started",
                extra={"remaining_ms": invocation.remaining_time_ms()},
            )

            result = await self.adapter.invoke(context, invocation.payload, invocation)

            self.state = LoopState.REPORTING
            await self._report(invocation, result)
        finally:
            clear_invocation()
            flush_handlers()
            self.state = LoopState.POLLING

    async def _report(self, invocation: Invocation, result: InvocationResult) -> None:
        """Send exactly one of report_success / report_failure."""
        try:
            if result.success:
                await self.reporter.report_success(invocation.invocation_id, result.payload)
                self.stats["succeeded"] += 1
                logger.info("Invocation succeeded")
            else:
                await self.reporter.report_failure(invocation.invocation_id, result.error)
                self.stats["failed"] += 1
                logger.info(
                    "Invocation failed",
                    extra={"error_type": result.error.error_type},
                )
        except (TransportError, ProtocolError) as e:
            # Not retried: the platform owns invocation accounting.
            self.stats["report_errors"] += 1
            logger.error(
                "%s while reporting invocation result: %s",
                type(e).__name__,
                e,
            )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """
        Request a deliberate shutdown.

        An idle long poll is cancelled immediately; a running invocation is
        allowed to finish and report first.
        """
        if self._stop_requested:
            return
        logger.info("Shutdown requested", extra={"state": self.state.value})
        self._stop_requested = True
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested
