"""
Pydantic model for the library configuration.
Provides robust validation for all settings.
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_TTL = timedelta(hours=1)


class CacheFlowConfig(BaseModel):
    """
    A validated, immutable configuration for one CacheFlow session.

    Only `ttl`, `offline_mode_enabled` and the transport tuning fields can be
    persisted in the INI file; the model and listener hooks are code-only.
    """

    # Caching policy
    ttl: timedelta = DEFAULT_TTL
    offline_mode_enabled: bool = True
    refresh_on_cache_hit: bool = True

    # Payload shape hints
    response_model: type[BaseModel] | None = Field(default=None, repr=False)
    error_model: type[BaseModel] | None = Field(default=None, repr=False)
    error_listener: Callable[[Any], None] | None = Field(default=None, repr=False)

    # Transport
    max_connections: int = 8
    request_timeout: float = 60.0

    class Config:
        """Pydantic model configuration."""

        frozen = True
        arbitrary_types_allowed = True

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: timedelta) -> timedelta:
        """Ensures the time-to-live is a positive duration."""
        if v <= timedelta(0):
            raise ValueError("TTL must be a positive duration.")
        return v

    @field_validator("max_connections")
    @classmethod
    def validate_connections(cls, v: int) -> int:
        """Ensures a reasonable connection pool size."""
        if v < 1 or v > 32:
            raise ValueError("Max connections must be between 1 and 32.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Request timeout must be greater than zero.")
        return v

    @model_validator(mode="after")
    def validate_policy(self) -> "CacheFlowConfig":
        """Checks for conflicting caching options."""
        if not self.offline_mode_enabled and not self.refresh_on_cache_hit:
            raise ValueError(
                "refresh_on_cache_hit=False requires offline mode, otherwise the "
                "cache could never be served."
            )
        return self

    @property
    def ttl_ms(self) -> int:
        """The time-to-live expressed in epoch milliseconds."""
        return int(self.ttl.total_seconds() * 1000)

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        code_only_fields = {"response_model", "error_model", "error_listener"}
        return {key for key in cls.model_fields if key not in code_only_fields}
