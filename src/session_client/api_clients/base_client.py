"""Base HTTP client for Session Client API operations.

Provides the single request executor every API call goes through:
token injection, request timeout, bounded retries for idempotent requests,
and translation of low-level failures into the client exception taxonomy.
"""

import asyncio
import logging
import random
from typing import Any, Dict, Iterable, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_LIMIT = 2
RETRYABLE_STATUS_CODES = frozenset({408, 500, 502, 503, 504})
IDEMPOTENT_METHODS = frozenset({"GET"})

ModelT = TypeVar("ModelT", bound=BaseModel)


def server_error_message(status: int) -> str:
    """User-facing message for an error response whose body is unreadable."""
    return f"Server error ({status}). Please try again later."


class ApiClientError(Exception):
    """Base exception for API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(ApiClientError):
    """Raised when no response reached the client."""

    pass


class RequestTimeoutError(ApiClientError):
    """Raised when a request exceeds its time budget and is cancelled."""

    pass


class ApiError(ApiClientError):
    """Raised for non-2xx responses.

    Attributes:
        status: HTTP status code of the failed response
        response: Parsed JSON body, or None when the body could not be parsed
        parse_failed: True when the body was present but not valid JSON
    """

    def __init__(
        self,
        message: str,
        status: int,
        response: Any = None,
        parse_failed: bool = False,
    ):
        super().__init__(message, status_code=status)
        self.status = status
        self.response = response
        self.parse_failed = parse_failed


class ParseError(ApiError):
    """Raised when a successful response carries a body that is not valid JSON."""

    def __init__(self, status: int):
        super().__init__(server_error_message(status), status, parse_failed=True)


class TokenProvider(Protocol):
    """Anything that can hand out the current bearer token."""

    def get_token(self) -> Optional[str]: ...


class HttpClient:
    """Configured request executor shared by all API clients.

    The token is read from the injected provider once per request, so a
    login or logout takes effect on the next call without rebuilding the
    client. Retries reuse the headers captured for the first attempt.
    """

    def __init__(
        self,
        api_root_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        retry_statuses: Iterable[int] = RETRYABLE_STATUS_CODES,
        retry_methods: Iterable[str] = IDEMPOTENT_METHODS,
        retry_jitter_ms: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the HTTP client.

        Args:
            api_root_url: Base URL every endpoint path is resolved against
            token_provider: Source of the current token (usually the session)
            timeout_ms: Default per-request timeout in milliseconds
            retry_limit: Additional attempts allowed for retryable requests
            retry_statuses: Status codes that trigger a retry
            retry_methods: HTTP methods that may be retried
            retry_jitter_ms: Upper bound of the random pause between attempts
            transport: Optional httpx transport (used by tests)
        """
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if retry_limit < 0:
            raise ValueError("retry_limit cannot be negative")

        self.api_root_url = api_root_url or ""
        self.timeout_ms = timeout_ms
        self.retry_limit = retry_limit
        self.retry_statuses = frozenset(retry_statuses)
        self.retry_methods = frozenset(m.upper() for m in retry_methods)
        self.retry_jitter_ms = retry_jitter_ms
        self._token_provider = token_provider
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "HttpClient":
        """Build a client from a ClientConfig."""
        return cls(
            api_root_url=config.api_root_url,
            token_provider=token_provider,
            timeout_ms=config.timeout_ms,
            retry_limit=config.retry_limit,
            retry_statuses=config.retry_statuses,
            retry_jitter_ms=config.retry_jitter_ms,
            transport=transport,
        )

    def set_token_provider(self, token_provider: Optional[TokenProvider]) -> None:
        self._token_provider = token_provider

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP session."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(
                base_url=self.api_root_url,
                timeout=httpx.Timeout(self.timeout_ms / 1000),
                headers={"Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._session

    def _build_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        request_headers: Dict[str, str] = dict(headers or {})
        token = self._token_provider.get_token() if self._token_provider else None
        if token is not None:
            request_headers["Authorization"] = f"Token {token}"
        return request_headers

    def _max_attempts(self, method: str) -> int:
        if method in self.retry_methods:
            return 1 + self.retry_limit
        return 1

    async def _pause_before_retry(self) -> None:
        if self.retry_jitter_ms > 0:
            await asyncio.sleep(random.uniform(0, self.retry_jitter_ms) / 1000)

    async def _send(
        self,
        method: str,
        path: str,
        headers: Dict[str, str],
        json: Any,
        params: Optional[Dict[str, Any]],
        timeout_ms: int,
    ) -> httpx.Response:
        timeout_s = timeout_ms / 1000
        try:
            return await asyncio.wait_for(
                self.session.request(
                    method,
                    path,
                    headers=headers,
                    json=json,
                    params=params,
                    timeout=timeout_s,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError(
                f"Request timed out after {timeout_ms} ms: {method} {path}"
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}") from e

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ApiError:
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            return ApiError(server_error_message(status), status, parse_failed=True)

        message = f"Request failed with status code {status}"
        if response.reason_phrase:
            message = f"{message} {response.reason_phrase}"
        return ApiError(message, status, response=body)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ParseError(response.status_code)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_ms: Optional[int] = None,
        model: Optional[Type[ModelT]] = None,
    ) -> Any:
        """Send a request and return its parsed JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Endpoint path relative to the API root
            headers: Extra request headers
            json: JSON-serializable request body
            params: Query string parameters
            timeout_ms: Per-request timeout override
            model: Optional pydantic model to validate the body into

        Returns:
            Parsed response body (None for empty bodies), or a model instance

        Raises:
            RequestTimeoutError: If an attempt exceeds the timeout
            NetworkError: If the server cannot be reached
            ApiError: If the final response is not 2xx
            ParseError: If a 2xx body is not valid JSON or does not fit `model`
            ValueError: If `timeout_ms` is not positive
        """
        effective_timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        if effective_timeout <= 0:
            raise ValueError("timeout_ms must be positive")

        method = method.upper()
        request_headers = self._build_headers(headers)
        max_attempts = self._max_attempts(method)
        attempt = 0

        while True:
            attempt += 1
            response = await self._send(
                method, path, request_headers, json, params, effective_timeout
            )

            if response.is_success:
                body = self._parse_body(response)
                if model is None:
                    return body
                try:
                    return model.model_validate(body)
                except ValidationError as e:
                    logger.warning(f"Unexpected response shape from {path}: {e}")
                    raise ParseError(response.status_code) from e

            if attempt < max_attempts and response.status_code in self.retry_statuses:
                logger.debug(
                    f"{method} {path} returned {response.status_code}, "
                    f"retrying ({attempt}/{max_attempts - 1})"
                )
                await self._pause_before_retry()
                continue

            raise self._error_from_response(response)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
