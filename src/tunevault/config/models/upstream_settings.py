"""Upstream API configuration model.

This module contains the configuration model for the catalog API client:
base URL, request timeout, retry/backoff policy and circuit breaker cooldown.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from tunevault.shared.constants import UpstreamDefaults


class UpstreamSettings(BaseModel):
    """Upstream catalog API configuration.

    Retry attempts count every request, including the first one: the
    default of 3 means one request plus two retries.
    """

    base_url: str = Field(
        default=UpstreamDefaults.BASE_URL,
        description="Base URL of the catalog API",
    )
    user_agent: str = Field(
        default=UpstreamDefaults.USER_AGENT,
        description="User-Agent header sent upstream",
    )

    # Request settings
    timeout: float = Field(
        default=UpstreamDefaults.TIMEOUT,
        gt=0,
        description="Total request timeout in seconds",
    )

    # Retry settings
    retry_attempts: int = Field(
        default=UpstreamDefaults.RETRY_ATTEMPTS,
        ge=1,
        description="Total number of attempts per request",
    )
    retry_delay: float = Field(
        default=UpstreamDefaults.RETRY_DELAY,
        ge=0,
        description="Base backoff delay in seconds",
    )
    retry_jitter: float = Field(
        default=UpstreamDefaults.RETRY_JITTER,
        ge=0,
        description="Upper bound of the uniform jitter added to each backoff",
    )
    max_retry_delay: float = Field(
        default=UpstreamDefaults.MAX_RETRY_DELAY,
        gt=0,
        description="Cap on a single backoff sleep in seconds",
    )

    # Rate limiting settings
    circuit_cooldown: float = Field(
        default=UpstreamDefaults.CIRCUIT_COOLDOWN,
        gt=0,
        description="Seconds upstream calls are blocked after a 429",
    )
    min_request_interval: float = Field(
        default=UpstreamDefaults.MIN_REQUEST_INTERVAL,
        ge=0,
        description="Minimum spacing between dispatched requests in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            msg = f"base_url must be an http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value.rstrip("/")


__all__ = ["UpstreamSettings"]
