import sys

import pytest

from funcrt.runtime.tests.runtime_helpers import make_config

_FIXTURE_MODULES = ("hello_function", "broken_init_function")


@pytest.fixture(autouse=True)
def _clean_runtime_env(monkeypatch):
    for name in (
        "RUNTIME_API",
        "AWS_LAMBDA_RUNTIME_API",
        "HANDLER",
        "_HANDLER",
        "TASK_ROOT",
        "LAMBDA_TASK_ROOT",
        "RUNTIME_API_PREFIX",
        "FUNCTION_NAME",
        "AWS_LAMBDA_FUNCTION_NAME",
        "BROKEN_INIT_BUCKET",
        "HELLO_GREETING",
        "LOG_CONFIG_PATH",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    # Fixture functions are imported by name; drop them so each test re-imports.
    for module_name in _FIXTURE_MODULES:
        sys.modules.pop(module_name, None)


@pytest.fixture
def runtime_config():
    return make_config()
