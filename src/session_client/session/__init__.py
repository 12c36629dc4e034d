"""Authentication session state and actions."""

from .manager import SessionManager, SessionState
from .actions import (
    ActionResult,
    AuthResult,
    forgot_password_action,
    login_action,
    logout_action,
    require_authentication,
    signup_action,
)

__all__ = [
    "SessionManager",
    "SessionState",
    "ActionResult",
    "AuthResult",
    "forgot_password_action",
    "login_action",
    "logout_action",
    "require_authentication",
    "signup_action",
]
