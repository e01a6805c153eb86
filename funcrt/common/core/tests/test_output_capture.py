import logging
import sys

from funcrt.common.core.output_capture import StreamToLogger, capture_output


def test_capture_output_routes_print_to_logging(caplog):
    original = sys.stdout

    with caplog.at_level(logging.INFO, logger="stdout"):
        with capture_output(True):
            print("line one\nline two")

    assert sys.stdout is original
    messages = [r.getMessage() for r in caplog.records if r.name == "stdout"]
    assert messages == ["line one", "line two"]


def test_capture_output_disabled_leaves_streams_alone():
    original = sys.stdout

    with capture_output(False):
        assert sys.stdout is original


def test_capture_output_restores_streams_on_error():
    original_out, original_err = sys.stdout, sys.stderr

    try:
        with capture_output(True):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert sys.stdout is original_out
    assert sys.stderr is original_err


def test_stream_to_logger_skips_blank_lines(caplog):
    stream = StreamToLogger(logging.getLogger("stderr"), logging.ERROR)

    with caplog.at_level(logging.ERROR, logger="stderr"):
        stream.write("\n\n  \nreal error\n")

    assert [r.getMessage() for r in caplog.records] == ["real error"]
