"""
Platform configuration.

Values come from a plain dict (``from_mapping``) or from ``SPTS_*``
environment variables (``from_env``). ``SPTS_CORS_ORIGINS`` takes a
comma-separated list.
"""

from typing import Annotated, Any, List, Mapping, Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .core.exceptions import ConfigurationError

ENV_PREFIX = "SPTS_"


class PlatformConfig(BaseSettings):
    """Settings the platform is wired from."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    lock_timeout: Optional[float] = Field(default=5.0, gt=0)
    graduation_min_credits: int = Field(default=120, ge=0)
    graduation_min_gpa: float = Field(default=2.0, ge=0.0, le=4.0)
    gpa_handler_priority: int = 0
    risk_handler_priority: int = 10
    rest_host: str = "0.0.0.0"
    rest_port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])

    @field_validator('log_level')
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @field_validator('cors_origins', mode='before')
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> 'PlatformConfig':
        """Build a config from a plain dict only, rejecting invalid values."""
        try:
            return cls.model_validate(dict(data or {}))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", details={'errors': e.errors()})

    @classmethod
    def from_env(cls) -> 'PlatformConfig':
        """Build a config from ``SPTS_*`` environment variables."""
        try:
            return cls()
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", details={'errors': e.errors()})
