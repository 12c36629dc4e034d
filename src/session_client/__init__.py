"""
Session Client - bearer-token session management and data access.

Keeps an authenticated session backed by a durable token store, sends
every API call through a single HTTP client with token injection, timeout
and retry policy, and runs a debounced, race-safe search pipeline.
"""

__version__ = "1.0.0"
