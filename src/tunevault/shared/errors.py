"""TuneVault Error Handling Module

This module defines the error handling system for TuneVault, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved

Upstream failures are split into the conditions callers need to tell apart:

- CircuitOpenError: the breaker is cooling down, no request was made
- RateLimitedError: a 429 was just received (also a CircuitOpenError)
- UpstreamError: retries exhausted on a non-429 failure
- UpstreamTimeoutError: retries exhausted and the last attempt timed out
- StoreUnavailableError: the durable tier failed (always absorbed)
- ParseError: the upstream body could not be resolved into a known shape
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for TuneVault.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Upstream API Errors
    UPSTREAM_CIRCUIT_OPEN = "UPSTREAM_CIRCUIT_OPEN"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_REQUEST_FAILED = "UPSTREAM_REQUEST_FAILED"
    UPSTREAM_SERVER_ERROR = "UPSTREAM_SERVER_ERROR"
    UPSTREAM_CONNECTION_ERROR = "UPSTREAM_CONNECTION_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_INVALID_RESPONSE = "UPSTREAM_INVALID_RESPONSE"

    # Durable Store Errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    STORE_READ_FAILED = "STORE_READ_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"

    # Queue Errors
    QUEUE_OPERATION_ERROR = "QUEUE_OPERATION_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Enum and Decimal to primitive types; None values are dropped.

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if val is None:
            continue
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to keep log records serializable.

    Attributes:
        operation: Optional operation name that caused the error
        cache_key: Optional cache key the operation was working on
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    cache_key: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as dict with additional_data always present."""
        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation
        if self.cache_key is not None:
            data["cache_key"] = self.cache_key
        data["additional_data"] = dict(self.additional_data or {})
        return data


class TuneVaultError(Exception):
    """Base exception class for all TuneVault errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Initialize TuneVaultError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(TuneVaultError):
    """Domain-specific errors.

    These errors occur when data received or produced violates the
    catalog's expected shapes or rules.
    """


class InfrastructureError(TuneVaultError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems like the
    upstream catalog API or the durable store.
    """


class ApplicationError(TuneVaultError):
    """Application-level errors (configuration, CLI, startup)."""


class CircuitOpenError(InfrastructureError):
    """Upstream calls are blocked while the circuit breaker cools down.

    No network I/O was performed for the failing call.
    """

    def __init__(
        self,
        message: str,
        retry_after: float,
        context: ErrorContext | None = None,
        code: ErrorCode = ErrorCode.UPSTREAM_CIRCUIT_OPEN,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.retry_after = max(0.0, retry_after)


class RateLimitedError(CircuitOpenError):
    """The upstream answered 429 and the breaker was tripped.

    Subclasses CircuitOpenError so best-effort callers can absorb both
    with a single except clause.
    """

    def __init__(
        self,
        message: str,
        retry_after: float,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            retry_after,
            context,
            code=ErrorCode.UPSTREAM_RATE_LIMITED,
            original_error=original_error,
        )


class UpstreamError(InfrastructureError):
    """Upstream request failed after all retry attempts."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamError):
    """Upstream request timed out on its final attempt."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(ErrorCode.UPSTREAM_TIMEOUT, message, context, original_error)


class StoreUnavailableError(InfrastructureError):
    """Durable store read or write failed."""


class ParseError(DomainError):
    """Upstream payload could not be parsed into a known response shape."""


def create_parse_error(
    message: str,
    operation: str | None = None,
    original_error: BaseException | None = None,
    **additional_data: PrimitiveContextValue,
) -> ParseError:
    """Create a parse error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data or None,
    )
    return ParseError(
        ErrorCode.UPSTREAM_INVALID_RESPONSE,
        message,
        context,
        original_error,
    )


def create_store_error(
    message: str,
    operation: str,
    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE,
    original_error: BaseException | None = None,
    cache_key: str | None = None,
) -> StoreUnavailableError:
    """Create a durable store error with context."""
    return StoreUnavailableError(
        code,
        message,
        ErrorContext(operation=operation, cache_key=cache_key),
        original_error,
    )
