"""Authentication API Client.

Wraps the authentication endpoints (login, signup, logout, password reset,
current user) on top of the shared HttpClient.
"""

import logging
from typing import Any, Dict

from .base_client import HttpClient, ParseError
from ..models import User

logger = logging.getLogger(__name__)

LOGIN_PATH = "auth/login/"
LOGOUT_PATH = "auth/logout/"
SIGNUP_PATH = "auth/signup/"
USER_PROFILE_PATH = "auth/user/"
PASSWORD_RESET_PATH = "auth/password/reset/"


class AuthAPIClient:
    """API client for authentication operations."""

    def __init__(self, http_client: HttpClient):
        self.http_client = http_client

    @staticmethod
    def _token_from(response: Any, status: int = 200) -> str:
        if isinstance(response, dict):
            key = response.get("key")
            if isinstance(key, str) and key:
                return key
        logger.error("Authentication response did not contain a token key")
        raise ParseError(status)

    async def login(self, email: str, password: str) -> str:
        """Authenticate and return the issued token.

        Raises:
            ApiError: If the server rejects the credentials
            NetworkError: If the server cannot be reached
            RequestTimeoutError: If the request times out
        """
        payload: Dict[str, str] = {"email": email, "password": password}
        response = await self.http_client.post(LOGIN_PATH, json=payload)
        return self._token_from(response)

    async def signup(self, email: str, password: str) -> str:
        """Register a new account and return the issued token."""
        payload: Dict[str, str] = {"email": email, "password": password}
        response = await self.http_client.post(SIGNUP_PATH, json=payload)
        return self._token_from(response)

    async def logout(self) -> None:
        """Invalidate the current token on the server."""
        await self.http_client.post(LOGOUT_PATH)

    async def request_password_reset(self, email: str) -> None:
        await self.http_client.post(PASSWORD_RESET_PATH, json={"email": email})

    async def fetch_user(self) -> User:
        """Return the profile of the authenticated user."""
        user: User = await self.http_client.get(USER_PROFILE_PATH, model=User)
        return user
