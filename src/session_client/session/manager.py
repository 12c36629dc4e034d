"""Session state management.

Owns the authentication state of the client (token, current user, loading
and error flags) and writes the token through to the durable token store.
The session doubles as the token provider of the HTTP client, so a login or
logout takes effect on the next request.
"""

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ..api_clients.auth_client import USER_PROFILE_PATH
from ..api_clients.error_classifier import classify
from ..models import User
from ..state import StateContainer
from ..storage.token_store import TokenStore

if TYPE_CHECKING:
    from ..api_clients.base_client import HttpClient

logger = logging.getLogger(__name__)

FETCH_USER_FAILED = "Failed to fetch user"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the authentication state."""

    token: Optional[str] = None
    user: Optional[User] = None
    loading: bool = False
    error: Optional[Exception] = None

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return classify(self.error, default_message=FETCH_USER_FAILED)


class SessionManager(StateContainer[SessionState]):
    """Authentication state machine backed by a TokenStore.

    States: logged out (no token), authenticated and idle, authenticated and
    loading the user profile, authenticated with a failed profile fetch.
    Logging in is a transient state owned by the caller.
    """

    def __init__(
        self,
        token_store: TokenStore,
        http_client: Optional["HttpClient"] = None,
    ):
        super().__init__(SessionState(token=token_store.get()))
        self._token_store = token_store
        self._http_client = http_client

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    def attach_client(self, http_client: "HttpClient") -> None:
        """Attach the HTTP client used by fetch_user."""
        self._http_client = http_client

    def get_token(self) -> Optional[str]:
        """Current token. The store is only read once, at construction."""
        return self._state.token

    def login(self, token: str) -> None:
        self._token_store.set(token)
        self._set_state(token=token, error=None)
        logger.debug("Session authenticated")

    def logout(self) -> None:
        already_logged_out = (
            self._state == SessionState() and self._token_store.get() is None
        )
        if already_logged_out:
            return
        self._token_store.remove()
        self._set_state(token=None, user=None, loading=False, error=None)
        logger.debug("Session logged out")

    def set_error(self, error: Optional[Exception]) -> None:
        self._set_state(error=error)

    async def fetch_user(self) -> None:
        """Fetch the current user profile.

        No-op without a token. Failures are stored on the state rather than
        raised, and a failed profile fetch leaves the session authenticated.
        """
        if self._state.token is None:
            return
        if self._http_client is None:
            logger.error("Cannot fetch user: no HTTP client attached to the session")
            self._set_state(error=RuntimeError("No HTTP client attached"))
            return

        self._set_state(loading=True, error=None)
        try:
            user = await self._http_client.get(USER_PROFILE_PATH, model=User)
        except Exception as e:
            logger.warning(f"Failed to fetch current user: {e}")
            self._set_state(loading=False, error=e)
            return

        self._set_state(user=user, loading=False, error=None)
