"""Search API Client.

Runs full-text search queries against the search endpoint through the
shared HttpClient.
"""

import logging

from pydantic import ValidationError

from .base_client import HttpClient, ParseError
from ..models import SearchResult

logger = logging.getLogger(__name__)

SEARCH_PATH = "search/"
DEFAULT_HITS_PER_PAGE = 10


class SearchAPIClient:
    """Client for search operations."""

    def __init__(self, http_client: HttpClient, hits_per_page: int = DEFAULT_HITS_PER_PAGE):
        if not 1 <= hits_per_page <= 100:
            raise ValueError("hits_per_page must be between 1 and 100")
        self.http_client = http_client
        self.hits_per_page = hits_per_page

    async def search(self, query: str) -> SearchResult:
        """Search for `query`.

        Blank queries return an empty result without touching the network.
        The returned result always carries the query it was issued for.

        Raises:
            ApiError: If the search endpoint answers with an error status
            NetworkError: If the server cannot be reached
            RequestTimeoutError: If the request times out
        """
        if not query.strip():
            return SearchResult.empty(query)

        body = await self.http_client.get(
            SEARCH_PATH, params={"q": query, "hits_per_page": self.hits_per_page}
        )

        if not isinstance(body, dict) or "hits" not in body:
            logger.debug(f"Search response for {query!r} has no hits")
            return SearchResult.empty(query)

        try:
            result = SearchResult.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Malformed search response for {query!r}: {e}")
            raise ParseError(200) from e

        # query is always the one sent, never the server echo
        return result.model_copy(update={"query": query})
