"""
Common Configuration
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class BaseAppConfig(BaseSettings):
    """
    Common application settings.
    """

    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: Optional[str] = Field(
        default=None, description="YAML logging config path (packaged default when unset)"
    )
    VERIFY_SSL: bool = Field(default=False, description="Whether to verify SSL certificates")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )
