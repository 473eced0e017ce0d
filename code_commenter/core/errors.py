"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients.

    Never put raw provider output or exception text here; details are
    serialized into the response body.
    """

    code: str
    message: str
    hint: str
    field: str
    max_value: int
    actual_value: int
    allowed_values: list[str]
    retry_after: int
    provider: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable, user-safe error message.
        details: Optional structured details for clients.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input fails validation."""


class ConfigurationAppError(AppError):
    """Raised when the service is misconfigured (e.g., missing provider key)."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget.

    ``headers`` carries the X-RateLimit-* and Retry-After values to attach
    to the 429 response.
    """

    headers: dict[str, str] | None = None


class LLMAppError(AppError):
    """Raised when upstream provider operations fail."""


class UpstreamAppError(LLMAppError):
    """Provider unreachable, overloaded, or timed out."""


class QuotaAppError(LLMAppError):
    """Provider rejected the call because this service exhausted its quota."""


class MalformedResponseAppError(LLMAppError):
    """Provider output could not be recovered as the expected JSON shape."""
