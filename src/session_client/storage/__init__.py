"""Durable storage backends for the session token."""

from .token_store import (
    TOKEN_KEY,
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
    TokenStore,
)

__all__ = [
    "TOKEN_KEY",
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "TokenStore",
]
