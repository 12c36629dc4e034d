"""API Client Abstractions for Session Client.

All HTTP traffic goes through HttpClient; the endpoint clients below only
describe their endpoints and payloads.
"""

from .base_client import (
    HttpClient,
    ApiClientError,
    ApiError,
    NetworkError,
    ParseError,
    RequestTimeoutError,
)
from .error_classifier import ErrorClassifier, classify, classify_signup_error
from .auth_client import AuthAPIClient
from .search_client import SearchAPIClient
from .resource_cache import ResourceCache

__all__ = [
    # Base client
    "HttpClient",
    "ApiClientError",
    "ApiError",
    "NetworkError",
    "ParseError",
    "RequestTimeoutError",
    # Error classification
    "ErrorClassifier",
    "classify",
    "classify_signup_error",
    # Endpoint clients
    "AuthAPIClient",
    "SearchAPIClient",
    # Cache
    "ResourceCache",
]
