"""
Where: funcrt/runtime/main.py
What: Process entry point for the function runtime.
Why: Assemble config, HTTP client and loop, and map outcomes to exit codes.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from funcrt.common.core.config import BaseAppConfig
from funcrt.common.core.http_client import HttpClientFactory
from funcrt.common.core.logging_config import flush_handlers, setup_logging

from .clients import EventClient, ResponseReporter
from .config import RuntimeConfig
from .core.exceptions import InitializationError
from .handler import HandlerAdapter
from .loop import InvocationLoop

logger = logging.getLogger("funcrt.main")

EXIT_OK = 0
EXIT_INIT_FAILURE = 1

# Shipped as package data so an installed bootstrap finds it from any working directory.
DEFAULT_LOG_CONFIG = Path(__file__).parent / "core" / "runtime_log.yaml"


def log_config_path(config: BaseAppConfig) -> str:
    return config.LOG_CONFIG_PATH or str(DEFAULT_LOG_CONFIG)


def _setup_logging(config: BaseAppConfig) -> None:
    setup_logging(log_config_path(config), config.LOG_LEVEL)


def build_loop(
    config: RuntimeConfig,
    client,
    handler: Optional[Callable[..., Any]] = None,
    init_hook: Optional[Callable[..., Any]] = None,
) -> InvocationLoop:
    """Wire the runtime components around a shared httpx.AsyncClient."""
    base_url = config.runtime_base_url
    return InvocationLoop(
        config=config,
        event_client=EventClient(client, base_url),
        reporter=ResponseReporter(
            client,
            base_url,
            timeout=config.REPORT_TIMEOUT,
            include_stack_trace=config.INCLUDE_STACK_TRACE,
        ),
        adapter=HandlerAdapter(capture_handler_output=config.CAPTURE_HANDLER_OUTPUT),
        handler=handler,
        init_hook=init_hook,
    )


def _install_signal_handlers(loop: InvocationLoop) -> None:
    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            event_loop.add_signal_handler(sig, loop.stop)
        except (NotImplementedError, RuntimeError):
            # Not available on this platform / outside the main thread.
            logger.debug("Signal handler for %s not installed", sig)


async def serve(
    config: RuntimeConfig,
    handler: Optional[Callable[..., Any]] = None,
    init_hook: Optional[Callable[..., Any]] = None,
) -> None:
    """
    Run the invocation loop until a deliberate shutdown.

    Raises:
        InitializationError: Cold start failed; the caller must exit non-zero
    """
    factory = HttpClientFactory(config)
    async with factory.create_async_client(connect_timeout=config.CONNECT_TIMEOUT) as client:
        loop = build_loop(config, client, handler=handler, init_hook=init_hook)
        await loop.initialize()
        _install_signal_handlers(loop)
        await loop.run()


def main(
    handler: Optional[Callable[..., Any]] = None,
    init_hook: Optional[Callable[..., Any]] = None,
) -> int:
    """
    Entry point. Reads no CLI flags; behaviour comes from the environment.

    Returns:
        0 on deliberate shutdown, 1 on initialization failure
    """
    try:
        config = RuntimeConfig()
    except ValidationError as e:
        # Logging settings are independent of the runtime settings that failed.
        try:
            _setup_logging(BaseAppConfig())
        except ValidationError:
            _setup_logging(BaseAppConfig.model_construct())
        logger.critical("Failed to load configuration: %s", e)
        flush_handlers()
        return EXIT_INIT_FAILURE

    _setup_logging(config)

    try:
        asyncio.run(serve(config, handler=handler, init_hook=init_hook))
    except InitializationError as e:
        logger.critical("%s", e, exc_info=e.cause is not None)
        flush_handlers()
        return EXIT_INIT_FAILURE

    flush_handlers()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
