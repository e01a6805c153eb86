"""
Where: funcrt/runtime/tests/test_runtime_config.py
What: Validate RuntimeConfig defaults, aliases and derived URLs.
Why: A missing RUNTIME_API must fail the cold start, never the first poll.
"""

import pytest
from pydantic import ValidationError

from funcrt.runtime.config import RuntimeConfig


def test_runtime_api_is_required(monkeypatch):
    monkeypatch.setenv("HANDLER", "app.handler")

    with pytest.raises(ValidationError):
        RuntimeConfig(_env_file=None)


def test_defaults(monkeypatch):
    monkeypatch.setenv("RUNTIME_API", "127.0.0.1:9001")

    config = RuntimeConfig(_env_file=None)

    assert config.HANDLER is None
    assert config.TASK_ROOT == "."
    assert config.INIT_FUNCTION == "init"
    assert config.INCLUDE_STACK_TRACE is False
    assert config.CAPTURE_HANDLER_OUTPUT is True
    assert config.REPORT_INIT_ERROR is True
    assert config.runtime_base_url == "http://127.0.0.1:9001"


def test_platform_aliases_are_accepted(monkeypatch):
    monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", "runtime:8080")
    monkeypatch.setenv("_HANDLER", "lambda_function.lambda_handler")
    monkeypatch.setenv("LAMBDA_TASK_ROOT", "/var/task")

    config = RuntimeConfig(_env_file=None)

    assert config.RUNTIME_API == "runtime:8080"
    assert config.HANDLER == "lambda_function.lambda_handler"
    assert config.TASK_ROOT == "/var/task"


def test_handler_must_name_module_and_function(monkeypatch):
    monkeypatch.setenv("RUNTIME_API", "127.0.0.1:9001")
    monkeypatch.setenv("HANDLER", "handler_without_module")

    with pytest.raises(ValidationError):
        RuntimeConfig(_env_file=None)


@pytest.mark.parametrize(
    "prefix, expected",
    [
        ("", "http://127.0.0.1:9001"),
        ("runtime", "http://127.0.0.1:9001/runtime"),
        ("/2018-06-01/runtime/", "http://127.0.0.1:9001/2018-06-01/runtime"),
    ],
)
def test_runtime_base_url_applies_prefix(monkeypatch, prefix, expected):
    monkeypatch.setenv("RUNTIME_API", "127.0.0.1:9001")
    monkeypatch.setenv("RUNTIME_API_PREFIX", prefix)

    config = RuntimeConfig(_env_file=None)

    assert config.runtime_base_url == expected


def test_runtime_api_with_scheme_is_kept(monkeypatch):
    monkeypatch.setenv("RUNTIME_API", "https://runtime.local:8443/")

    config = RuntimeConfig(_env_file=None)

    assert config.runtime_base_url == "https://runtime.local:8443"
