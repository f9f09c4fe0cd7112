"""Error taxonomy and message extraction for ModelWhiz CLI."""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred."


class ErrorCategory(Enum):
    """Error categories for better handling."""

    NETWORK = "network"
    API = "api"
    AUTH = "auth"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class ModelWhizError(Exception):
    """Base exception class for ModelWhiz CLI with a category for hints."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.original_error = original_error

        # Auto-classify error if not provided
        if category == ErrorCategory.UNKNOWN and original_error:
            self.category = self._classify_error(original_error)

    def _classify_error(self, error: Exception) -> ErrorCategory:
        """Automatically classify error based on type."""
        if isinstance(error, httpx.TransportError):
            return ErrorCategory.NETWORK
        if isinstance(error, httpx.HTTPStatusError):
            if error.response.status_code == 404:
                return ErrorCategory.NOT_FOUND
            if error.response.status_code in (401, 403):
                return ErrorCategory.AUTH
            return ErrorCategory.API
        if isinstance(error, (ValueError, TypeError)):
            return ErrorCategory.VALIDATION
        return ErrorCategory.UNKNOWN

    def get_user_message(self) -> str:
        """Get user-friendly error message."""
        base_message = self.message

        if self.category == ErrorCategory.NETWORK:
            return (
                f"Network error: {base_message}\n"
                "💡 Check that the ModelWhiz API is running and reachable."
            )
        elif self.category == ErrorCategory.AUTH:
            return (
                f"Authentication error: {base_message}\n"
                "💡 Run `modelwhiz login` and try again."
            )
        elif self.category == ErrorCategory.NOT_FOUND:
            return f"Not found: {base_message}"
        elif self.category == ErrorCategory.VALIDATION:
            return (
                f"Validation error: {base_message}\n"
                "💡 Please check your input parameters."
            )
        return f"Error: {base_message}"


class ApiError(ModelWhizError):
    """Transport-level failure talking to the evaluation API.

    Raised for network failures and for any non-2xx response. A job that
    reports FAILED is not an ApiError.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.payload = payload

    @classmethod
    def from_exception(cls, error: Exception) -> "ApiError":
        """Build an ApiError from an httpx exception."""
        status_code = None
        payload = None
        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            payload = _response_payload(error.response)

        return cls(
            extract_error_message(error, payload),
            status_code=status_code,
            payload=payload,
            original_error=error,
        )


class AuthError(ModelWhizError):
    """The identity provider rejected a request."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message, ErrorCategory.AUTH, original_error)


def _response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def extract_error_message(error: Exception | None, payload: Any = None) -> str:
    """Best-effort message for a failed request.

    Priority: server ``detail``, server ``message``, the transport error's
    own text, then a generic fallback.
    """
    if isinstance(payload, dict):
        for key in ("detail", "message"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)

    if error is not None:
        if isinstance(error, httpx.HTTPStatusError):
            response = error.response
            return f"Request failed with status code {response.status_code}"
        text = str(error)
        if text:
            return text

    return DEFAULT_ERROR_MESSAGE


# Receives every transport failure before it propagates to the call site
ErrorNotifier = Callable[[ApiError], None]


def log_error_notifier(error: ApiError) -> None:
    """Default notifier: log only."""
    logger.error(f"API Error: {error.message}")
