"""Debounced search pipeline."""

from .debounced_search import DebouncedSearch, SearchState

__all__ = ["DebouncedSearch", "SearchState"]
