"""Factory for wiring the client services together with dependency injection."""

from dataclasses import dataclass
from typing import Optional

import httpx

from .api_clients.auth_client import AuthAPIClient
from .api_clients.base_client import HttpClient
from .api_clients.resource_cache import ResourceCache
from .api_clients.search_client import SearchAPIClient
from .config import ClientConfig
from .search.debounced_search import DebouncedSearch
from .session.manager import SessionManager
from .storage.token_store import FileStorage, KeyValueStorage, TokenStore


@dataclass
class ClientServices:
    """Fully wired set of services sharing one session and one HTTP client."""

    config: ClientConfig
    session: SessionManager
    http_client: HttpClient
    auth_client: AuthAPIClient
    search_client: SearchAPIClient
    cache: ResourceCache

    def create_search_pipeline(self) -> DebouncedSearch:
        return DebouncedSearch.for_client(
            self.search_client, debounce_ms=self.config.debounce_ms
        )

    async def close(self) -> None:
        await self.http_client.close()

    async def __aenter__(self) -> "ClientServices":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class ClientServiceFactory:
    """Creates client services from configuration."""

    @staticmethod
    def create_services(
        config: ClientConfig,
        storage: Optional[KeyValueStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ClientServices:
        """Create services for `config`.

        Args:
            config: Client configuration
            storage: Token storage backend; defaults to a FileStorage at
                `config.storage_path`
            transport: Optional httpx transport (used by tests)

        Returns:
            Wired ClientServices instance
        """
        token_store = TokenStore(storage or FileStorage(config.storage_path))
        session = SessionManager(token_store)
        http_client = HttpClient.from_config(
            config, token_provider=session, transport=transport
        )
        session.attach_client(http_client)

        return ClientServices(
            config=config,
            session=session,
            http_client=http_client,
            auth_client=AuthAPIClient(http_client),
            search_client=SearchAPIClient(
                http_client, hits_per_page=config.search_hits_per_page
            ),
            cache=ResourceCache(http_client.get),
        )
