"""Authentication actions.

Glue between the auth endpoints, the session and navigation. Each action
returns a result object carrying either its payload or a user-facing error
message; none of them raise for request failures.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..api_clients.auth_client import AuthAPIClient
from ..api_clients.error_classifier import (
    GENERIC_FAILURE,
    classify,
    classify_signup_error,
)
from ..api_clients.resource_cache import ResourceCache
from .manager import SessionManager

logger = logging.getLogger(__name__)

DASHBOARD_ROUTE = "/dashboard"
LOGIN_ROUTE = "/login"

Redirect = Callable[[str], None]


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login or signup attempt."""

    success: bool
    token: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an action without a payload."""

    success: bool
    error: Optional[str] = None


async def login_action(
    auth_client: AuthAPIClient,
    session: SessionManager,
    email: str,
    password: str,
    redirect: Optional[Redirect] = None,
) -> AuthResult:
    """Log in, store the token in the session and go to the dashboard."""
    try:
        token = await auth_client.login(email, password)
    except Exception as e:
        logger.info(f"Login failed: {e}")
        return AuthResult(success=False, error=classify(e))

    session.login(token)
    if redirect is not None:
        redirect(DASHBOARD_ROUTE)
    return AuthResult(success=True, token=token)


async def signup_action(
    auth_client: AuthAPIClient,
    session: SessionManager,
    email: str,
    password: str,
    redirect: Optional[Redirect] = None,
) -> AuthResult:
    """Register, store the token in the session and go to the dashboard."""
    try:
        token = await auth_client.signup(email, password)
    except Exception as e:
        logger.info(f"Signup failed: {e}")
        return AuthResult(success=False, error=classify_signup_error(e))

    session.login(token)
    if redirect is not None:
        redirect(DASHBOARD_ROUTE)
    return AuthResult(success=True, token=token)


async def logout_action(
    auth_client: AuthAPIClient,
    session: SessionManager,
    cache: Optional[ResourceCache] = None,
    redirect: Optional[Redirect] = None,
) -> None:
    """Invalidate the server token (best effort) and clear local state.

    Local state is cleared even when the server call fails.
    """
    if session.get_token() is not None:
        try:
            await auth_client.logout()
        except Exception as e:
            logger.warning(f"Server-side logout failed, clearing local session anyway: {e}")

    session.logout()
    if cache is not None:
        cache.mutate(lambda key: True, data=None, revalidate=False)
    if redirect is not None:
        redirect(LOGIN_ROUTE)


async def forgot_password_action(auth_client: AuthAPIClient, email: str) -> ActionResult:
    try:
        await auth_client.request_password_reset(email)
    except Exception as e:
        logger.info(f"Password reset request failed: {e}")
        return ActionResult(
            success=False, error=classify(e, default_message=GENERIC_FAILURE)
        )
    return ActionResult(success=True)


def require_authentication(session: SessionManager, redirect: Redirect) -> bool:
    """Guard for protected routes; redirects to login when there is no token."""
    if session.get_token() is None:
        redirect(LOGIN_ROUTE)
        return False
    return True
