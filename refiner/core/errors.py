"""Error taxonomy and classifier.

Architectural role:
    Every failure that can leave the process is expressed as a `RefinerError`
    subclass and converted to exactly one `ErrorResponse` through
    `to_response()` or `classify_exception()`.

Taxonomy:
    - Client input errors (HTTP 400): raised by `refiner.validation`.
    - Server configuration errors (HTTP 500): missing provider credential.
    - Upstream provider errors: classified through `PROVIDER_ERROR_TABLE`,
      keyed by `(status, provider_code)` with a `(status, None)` fallback.
      Anything not listed maps to `AI_API_ERROR` with the provider status.
    - Unexpected local exceptions (HTTP 500): generic message in production,
      exception name and stack in development.

Retry semantics:
    Nothing here retries. `details["retryable"]` marks the categories that
    mean "try again later" (rate limit, overload, timeout) so callers can decide.

Determinism:
    Classification is a pure function of the exception's fields.
"""

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from refiner.core.types import ErrorResponse


class ErrorCode(str, Enum):
    # Client input (400)
    INVALID_JSON = "INVALID_JSON"
    MISSING_TEXT = "MISSING_TEXT"
    TEXT_TOO_SHORT = "TEXT_TOO_SHORT"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"
    INVALID_MODE = "INVALID_MODE"
    INVALID_SUMMARY_LEVEL = "INVALID_SUMMARY_LEVEL"
    INVALID_TONE = "INVALID_TONE"
    INVALID_MODEL = "INVALID_MODEL"
    INVALID_AUDIENCE = "INVALID_AUDIENCE"
    INVALID_SUMMARY_FORMAT = "INVALID_SUMMARY_FORMAT"
    INVALID_REWRITE_GOAL = "INVALID_REWRITE_GOAL"
    INVALID_PROMPT_STRUCTURE = "INVALID_PROMPT_STRUCTURE"

    # Server configuration / local failures (500)
    MISSING_API_KEY = "MISSING_API_KEY"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # Upstream provider
    AI_CONTENT_FILTER = "AI_CONTENT_FILTER"
    AI_BAD_REQUEST = "AI_BAD_REQUEST"
    AI_AUTH_ERROR = "AI_AUTH_ERROR"
    AI_RATE_LIMIT_ERROR = "AI_RATE_LIMIT_ERROR"
    AI_SERVER_ERROR = "AI_SERVER_ERROR"
    AI_SERVICE_UNAVAILABLE = "AI_SERVICE_UNAVAILABLE"
    AI_API_ERROR = "AI_API_ERROR"
    AI_TIMEOUT = "AI_TIMEOUT"
    AI_CONNECTION_ERROR = "AI_CONNECTION_ERROR"
    AI_STREAM_INTERRUPTED = "AI_STREAM_INTERRUPTED"


# =========================================================
# PROVIDER STATUS TABLE
# =========================================================

@dataclass(frozen=True)
class ProviderErrorSpec:
    """One row of the provider classification table.

    `message` may reference `{status}` and `{provider_message}`.
    """

    code: ErrorCode
    message: str
    retryable: bool = False
    include_headers: bool = False


CONTENT_FILTER_CODES = ("content_filter", "content_policy_violation")

_CONTENT_FILTER_SPEC = ProviderErrorSpec(
    ErrorCode.AI_CONTENT_FILTER,
    "Your request was blocked by the AI service's content policy. "
    "Please modify your input text.",
)

PROVIDER_ERROR_TABLE: Dict[tuple, ProviderErrorSpec] = {
    **{(400, code): _CONTENT_FILTER_SPEC for code in CONTENT_FILTER_CODES},
    (400, None): ProviderErrorSpec(
        ErrorCode.AI_BAD_REQUEST,
        "The request to the AI service was invalid. {provider_message}",
    ),
    (401, None): ProviderErrorSpec(
        ErrorCode.AI_AUTH_ERROR,
        "Authentication with the AI service failed. Please check server configuration.",
    ),
    (429, None): ProviderErrorSpec(
        ErrorCode.AI_RATE_LIMIT_ERROR,
        "The AI service is experiencing high traffic or rate limits have been "
        "exceeded. Please try again shortly.",
        retryable=True,
        include_headers=True,
    ),
    (500, None): ProviderErrorSpec(
        ErrorCode.AI_SERVER_ERROR,
        "The AI service encountered an internal error. Please try again later.",
    ),
    (503, None): ProviderErrorSpec(
        ErrorCode.AI_SERVICE_UNAVAILABLE,
        "The AI service is temporarily unavailable or overloaded. Please try again later.",
        retryable=True,
    ),
}

DEFAULT_PROVIDER_SPEC = ProviderErrorSpec(
    ErrorCode.AI_API_ERROR,
    "An error occurred with the AI service (Status: {status}). {provider_message}",
)

# Headers worth keeping on a 429 so callers can schedule a retry.
_RATE_LIMIT_HEADER_PREFIXES = ("retry-after", "x-ratelimit-")


def lookup_provider_spec(status: int, provider_code: Optional[str]) -> ProviderErrorSpec:
    """Return the table row for a provider failure, most specific key first."""
    spec = PROVIDER_ERROR_TABLE.get((status, provider_code))
    if spec is None:
        spec = PROVIDER_ERROR_TABLE.get((status, None), DEFAULT_PROVIDER_SPEC)
    return spec


# =========================================================
# EXCEPTIONS
# =========================================================

class RefinerError(Exception):
    """Base class for failures with a stable taxonomy code."""

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR
    status: int = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            code=self.code.value,
            message=self.message,
            status=self.status,
            details=self.details,
        )


class RequestValidationError(RefinerError):
    """Inbound request rejected before any provider call."""

    status = 400

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        super().__init__(message, details)


class MissingApiKeyError(RefinerError):
    code = ErrorCode.MISSING_API_KEY
    status = 500
    default_message = "Server configuration error. Please contact the administrator."


class ProviderError(RefinerError):
    """Failure originating at the completion provider or its transport."""

    code = ErrorCode.AI_API_ERROR
    status = 502


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        provider_code: Optional[str] = None,
        provider_type: Optional[str] = None,
        provider_message: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.provider_status = status
        self.provider_code = provider_code
        self.provider_type = provider_type
        self.provider_message = provider_message or ""
        self.headers = dict(headers or {})

        spec = lookup_provider_spec(status, provider_code)
        self.spec = spec
        self.code = spec.code
        self.status = status if 400 <= status < 600 else 502

        message = spec.message.format(
            status=status,
            provider_message=self.provider_message or "Please try again.",
        ).strip()

        details: Dict[str, Any] = {
            "status": status,
            "code": provider_code,
            "type": provider_type,
            "retryable": spec.retryable,
        }
        if spec.include_headers:
            details["headers"] = {
                key: value
                for key, value in self.headers.items()
                if key.lower().startswith(_RATE_LIMIT_HEADER_PREFIXES)
            }
        super().__init__(message, details)


class ProviderTimeoutError(ProviderError):
    code = ErrorCode.AI_TIMEOUT
    status = 504
    default_message = "The AI service did not respond in time. Please try again."

    def __init__(self, message: Optional[str] = None, phase: str = "connect"):
        super().__init__(message, {"phase": phase, "retryable": True})


class ProviderConnectionError(ProviderError):
    code = ErrorCode.AI_CONNECTION_ERROR
    status = 502
    default_message = "Failed to connect to the AI service. Please try again later."

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message, {"reason": reason, "retryable": True})


class StreamInterruptedError(ProviderError):
    """Provider stream failed after fragments may already have been relayed."""

    code = ErrorCode.AI_STREAM_INTERRUPTED
    status = 502
    default_message = "The AI service stream was interrupted before completion."

    def __init__(
        self,
        message: Optional[str] = None,
        reason: Optional[str] = None,
        fragments_emitted: int = 0,
        provider_code: Optional[str] = None,
    ):
        self.reason = reason
        self.fragments_emitted = fragments_emitted
        super().__init__(
            message,
            {
                "reason": reason,
                "fragmentsEmitted": fragments_emitted,
                "code": provider_code,
            },
        )


# =========================================================
# CLASSIFIER
# =========================================================

def classify_exception(exc: BaseException, development: bool = False) -> ErrorResponse:
    """Map any exception to the single `ErrorResponse` returned to callers.

    Args:
        exc: Exception caught at the API boundary.
        development: Expose exception name and stack for non-taxonomy errors.

    Returns:
        `exc.to_response()` for `RefinerError`, otherwise an
        `INTERNAL_SERVER_ERROR` response whose detail depends on `development`.
    """
    if isinstance(exc, RefinerError):
        return exc.to_response()

    if not development:
        return ErrorResponse(
            code=ErrorCode.INTERNAL_SERVER_ERROR.value,
            message="An unexpected error occurred.",
            status=500,
        )

    return ErrorResponse(
        code=ErrorCode.INTERNAL_SERVER_ERROR.value,
        message=str(exc) or exc.__class__.__name__,
        status=500,
        details={
            "name": exc.__class__.__name__,
            "stack": "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
        },
    )
