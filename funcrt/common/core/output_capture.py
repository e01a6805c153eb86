"""
Handler Output Capture

Routes print() output from user handlers through the logging system so each
line carries the invocation context.
"""

import contextlib
import logging
import sys


class StreamToLogger:
    """
    Redirects stdout/stderr to a logger instance.
    Captures print() statements and sends them through the logging system.
    """

    def __init__(self, logger: logging.Logger, level: int):
        self.logger = logger
        self.level = level

    def write(self, buf: str):
        for line in buf.rstrip().splitlines():
            if line.strip():
                self.logger.log(self.level, line.rstrip())
        return len(buf)

    def flush(self):
        pass


@contextlib.contextmanager
def capture_output(enabled: bool = True):
    """
    Hijack stdout/stderr for the duration of the block.

    Usage:
        with capture_output(config.CAPTURE_HANDLER_OUTPUT):
            result = handler(event, context)
    """
    if not enabled:
        yield
        return

    original_stdout = sys.stdout
    original_stderr = sys.stderr
    sys.stdout = StreamToLogger(logging.getLogger("stdout"), logging.INFO)
    sys.stderr = StreamToLogger(logging.getLogger("stderr"), logging.ERROR)
    try:
        yield
    finally:
        sys.stdout = original_stdout
        sys.stderr = original_stderr
