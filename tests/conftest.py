"""
Shared pytest fixtures for Session Client tests.

Provides HTTP clients wired to an in-process httpx.MockTransport, and
sessions backed by in-memory token storage.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from session_client.api_clients.base_client import HttpClient
from session_client.session.manager import SessionManager
from session_client.storage.token_store import MemoryStorage, TokenStore

API_ROOT = "https://api.example.com/v1/"


def json_response(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, json=body)


class RecordingHandler:
    """MockTransport handler that replays queued responses and records requests."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses: List[Any] = list(responses or [])
        self.requests: List[httpx.Request] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def json_body(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def token_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session(token_storage: MemoryStorage) -> SessionManager:
    return SessionManager(TokenStore(token_storage))


@pytest.fixture
def make_client(session: SessionManager) -> Callable[..., HttpClient]:
    """Factory for HttpClients talking to a MockTransport handler."""
    created: List[HttpClient] = []

    def _make(handler: Callable[[httpx.Request], Any], **kwargs) -> HttpClient:
        kwargs.setdefault("api_root_url", API_ROOT)
        kwargs.setdefault("token_provider", session)
        client = HttpClient(transport=httpx.MockTransport(handler), **kwargs)
        created.append(client)
        return client

    return _make
