"""Exceptions raised by the cache."""

from __future__ import annotations

import os


class CacheError(Exception):
    """Base class for every error raised by the cache."""


class EntryNotFoundOrExpiredError(CacheError):
    """Raised when an index entry is missing or its TTL has expired."""

    def __init__(self, cache: str | os.PathLike[str], key: str) -> None:
        self.cache = os.fspath(cache)
        self.key = key
        super().__init__(
            f'Entry not found or expired for key "{key}" in cache "{self.cache}"'
        )