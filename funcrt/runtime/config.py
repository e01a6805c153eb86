"""
Runtime configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from funcrt.common.core.config import BaseAppConfig


class RuntimeConfig(BaseAppConfig):
    """
    Configuration for the function runtime process.
    """

    # Runtime endpoint (required from env)
    RUNTIME_API: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("RUNTIME_API", "AWS_LAMBDA_RUNTIME_API"),
        description="host:port of the platform's runtime endpoint",
    )
    RUNTIME_API_PREFIX: str = Field(default="", description="Path prefix of the runtime API")

    # Handler resolution (required unless a handler is passed to main())
    HANDLER: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("HANDLER", "_HANDLER"),
        description="Handler in module.function form",
    )
    TASK_ROOT: str = Field(
        default=".",
        validation_alias=AliasChoices("TASK_ROOT", "LAMBDA_TASK_ROOT"),
        description="Directory holding the function code",
    )
    INIT_FUNCTION: str = Field(
        default="init", description="Optional cold-start hook name in the handler module"
    )
    FUNCTION_NAME: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FUNCTION_NAME", "AWS_LAMBDA_FUNCTION_NAME"),
        description="Function name exposed to the handler context",
    )

    # Timeouts (seconds)
    CONNECT_TIMEOUT: float = Field(default=5.0, description="Runtime API connect timeout")
    REPORT_TIMEOUT: float = Field(default=10.0, description="Timeout for result/error posts")

    # Error recovery (seconds)
    TRANSPORT_RETRY_DELAY: float = Field(
        default=0.5, ge=0, description="Pause before re-polling after a transport failure"
    )
    PROTOCOL_ERROR_BACKOFF: float = Field(
        default=1.0, ge=0, description="Back-off after a malformed platform response"
    )

    # Behaviour flags
    INCLUDE_STACK_TRACE: bool = Field(
        default=False, description="Add stackTrace to reported error bodies"
    )
    CAPTURE_HANDLER_OUTPUT: bool = Field(
        default=True, description="Route handler print() output through logging"
    )
    REPORT_INIT_ERROR: bool = Field(
        default=True, description="Post cold-start failures to the init error endpoint"
    )

    @field_validator("HANDLER")
    @classmethod
    def _validate_handler(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        module_name, _, func_name = value.strip().rpartition(".")
        if not module_name or not func_name:
            raise ValueError(f"HANDLER must be in module.function form: {value!r}")
        return value.strip()

    @field_validator("RUNTIME_API_PREFIX")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value

    @property
    def runtime_base_url(self) -> str:
        """Base URL for all runtime endpoint requests."""
        api = self.RUNTIME_API.strip().rstrip("/")
        if "://" not in api:
            api = f"http://{api}"
        return f"{api}{self.RUNTIME_API_PREFIX}"

    # model_config is inherited
