"""Error classification for user-facing messages.

Maps failures coming out of the HTTP client (and the lower-level httpx /
asyncio exceptions that can escape it) onto a short user-facing message.
Classification never raises: whatever it is handed, it returns a string.
"""

import asyncio
import logging
from typing import Any, Optional, Sequence

import httpx

from .base_client import (
    ApiError,
    NetworkError,
    RequestTimeoutError,
    server_error_message,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
REQUEST_TIMEOUT = "Request timed out. Please try again."
NETWORK_UNREACHABLE = "Unable to reach the server. Please check your connection."
UNEXPECTED_ERROR = "An unexpected error occurred"
REGISTRATION_FAILED = "Registration failed. Please try again."
GENERIC_FAILURE = "Something went wrong. Please try again later."


def is_timeout_error(error: BaseException) -> bool:
    return isinstance(
        error, (RequestTimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
    )


def is_network_error(error: BaseException) -> bool:
    return isinstance(error, (NetworkError, httpx.TransportError, ConnectionError))


class ErrorClassifier:
    """Turns an exception into a user-facing message.

    Rules, in priority order:
    1. first entry of any list field named in `list_fields` found in the body
    2. a `detail` string in the body
    3. timeout message for timeouts and aborted requests
    4. connectivity message when no response was received
    5. server error message (with status) when the body could not be parsed
    6. `default_message` for any other ApiError
    7. generic unexpected-error message
    """

    def __init__(
        self,
        list_fields: Sequence[str] = ("non_field_errors",),
        default_message: str = INVALID_CREDENTIALS,
    ):
        self.list_fields = tuple(list_fields)
        self.default_message = default_message

    @staticmethod
    def _first_string(body: dict, field: str) -> Optional[str]:
        value = body.get(field)
        if isinstance(value, list) and value and isinstance(value[0], str):
            return value[0]
        return None

    def _message_from_body(self, body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        for field in self.list_fields:
            message = self._first_string(body, field)
            if message is not None:
                return message
        detail = body.get("detail")
        if isinstance(detail, str):
            return detail
        return None

    def _classify(self, error: BaseException, default_message: str) -> str:
        if isinstance(error, ApiError):
            message = self._message_from_body(error.response)
            if message is not None:
                return message

        if is_timeout_error(error):
            return REQUEST_TIMEOUT

        if is_network_error(error):
            return NETWORK_UNREACHABLE

        if isinstance(error, ApiError):
            if error.parse_failed:
                return server_error_message(error.status)
            return default_message

        logger.warning(f"Unclassified error: {type(error).__name__}: {error}")
        return UNEXPECTED_ERROR

    def classify(
        self, error: BaseException, default_message: Optional[str] = None
    ) -> str:
        """Return the user-facing message for `error`."""
        try:
            return self._classify(error, default_message or self.default_message)
        except Exception as e:
            logger.error(f"Error classification failed for {error!r}: {e}")
            return UNEXPECTED_ERROR


_default_classifier = ErrorClassifier()
_signup_classifier = ErrorClassifier(
    list_fields=("email", "password", "non_field_errors"),
    default_message=REGISTRATION_FAILED,
)


def classify(error: BaseException, default_message: str = INVALID_CREDENTIALS) -> str:
    """Classify an error using the login-flow rules.

    `default_message` replaces the "Invalid credentials" fallback for
    ApiErrors without a recognizable body; non-auth callers should pass one.
    """
    return _default_classifier.classify(error, default_message)


def classify_signup_error(error: BaseException) -> str:
    """Classify an error from the signup flow (field errors first)."""
    return _signup_classifier.classify(error)
