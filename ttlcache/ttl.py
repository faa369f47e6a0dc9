"""TTL-aware reads, writes and listings on top of the cache store."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterator
from datetime import timedelta
from typing import Any

from ttlcache import store
from ttlcache.errors import EntryNotFoundOrExpiredError
from ttlcache.store import Metadata, PathLike

EXPIRES_AT_MILLIS = "expires_at_millis"
_U64_MAX = 2**64 - 1


def _now_millis() -> int:
    return min(time.time_ns() // 1_000_000, _U64_MAX)


def _duration_millis(ttl: timedelta | float) -> int:
    if isinstance(ttl, timedelta):
        millis = ttl // timedelta(milliseconds=1)
    else:
        millis = int(ttl * 1000)
    if millis < 0:
        raise ValueError("ttl must not be negative")
    return min(millis, _U64_MAX)


def _expires_at_millis(ttl: timedelta | float) -> int:
    return min(_now_millis() + _duration_millis(ttl), _U64_MAX)


def _as_u64(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX:
        return value
    return None


def is_expired(entry: Metadata) -> bool:
    """True when the entry carries an expiry timestamp that lies in the past."""
    if not isinstance(entry.metadata, dict):
        return False
    expires_at = _as_u64(entry.metadata.get(EXPIRES_AT_MILLIS))
    if expires_at is None:
        return False
    return _now_millis() > expires_at


def _metadata_with_ttl(existing: Metadata | None, ttl: timedelta | float) -> dict[str, Any]:
    previous = existing.metadata if existing is not None else None
    result = dict(previous) if isinstance(previous, dict) else {}
    result[EXPIRES_AT_MILLIS] = _expires_at_millis(ttl)
    return result


def read_sync(cache: PathLike, key: str) -> bytes:
    """Read an entry, removing it and raising if its TTL has expired."""
    entry = store.metadata(cache, key)
    if entry is None:
        raise EntryNotFoundOrExpiredError(cache, key)
    if is_expired(entry):
        store.remove(cache, key)
        raise EntryNotFoundOrExpiredError(cache, key)
    return store.read(cache, key)


async def read(cache: PathLike, key: str) -> bytes:
    """Asynchronous form of :func:`read_sync`."""
    return await asyncio.to_thread(read_sync, cache, key)


def list_sync(cache: PathLike) -> Iterator[Metadata]:
    """Yield live entries, removing expired ones from the index as they are met."""
    for entry in store.list_entries(cache):
        if is_expired(entry):
            store.remove(cache, entry.key)
            continue
        yield entry


def write_sync(cache: PathLike, key: str, data: bytes, ttl: timedelta | float) -> str:
    """Write an entry that expires after ``ttl``; return its integrity string.

    Existing JSON and raw metadata for the key are kept.
    """
    ttl_metadata_source = store.metadata(cache, key)
    _duration_millis(ttl)
    integrity = store.write(cache, key, data)
    current = store.metadata(cache, key)
    if current is None:
        raise EntryNotFoundOrExpiredError(cache, key)
    store.insert(
        cache,
        key,
        current.integrity,
        current.size,
        _metadata_with_ttl(ttl_metadata_source, ttl),
        ttl_metadata_source.raw_metadata if ttl_metadata_source is not None else None,
    )
    return integrity


async def write(cache: PathLike, key: str, data: bytes, ttl: timedelta | float) -> str:
    """Asynchronous form of :func:`write_sync`."""
    return await asyncio.to_thread(write_sync, cache, key, data, ttl)