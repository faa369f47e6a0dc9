# ttlcache

A content-addressable disk cache whose entries can carry a time-to-live.

Content is stored under its SHA-256 hash, and an index maps string keys to
that content together with JSON metadata and optional raw bytes. A TTL write
records the expiry time, in milliseconds since the Unix epoch, in the index
metadata under `expires_at_millis`. When a read or a listing finds an expired
entry, it removes that entry from the index and treats it as missing.

The package has no runtime dependencies.

## Installation

```
pip install ttlcache
```

## TTL reads and writes: `ttlcache.ttl`

```python
from datetime import timedelta

from ttlcache import ttl

integrity = ttl.write_sync("./cache", "key", b"value", timedelta(seconds=60))
assert ttl.read_sync("./cache", "key") == b"value"

keys = [entry.key for entry in ttl.list_sync("./cache")]
```

- `write_sync(cache, key, data, ttl)` stores `data` under `key` and returns
  its integrity string, for example `sha256-...`. `ttl` is a `timedelta` or a
  number of seconds. A negative `ttl` raises `ValueError`.
- `read_sync(cache, key)` returns the stored bytes. If the key is missing,
  it raises `EntryNotFoundOrExpiredError`. If the entry has expired, it first
  removes the key from the index and then raises the same error.
- `list_sync(cache)` yields `ttlcache.store.Metadata` for each live entry. It
  removes expired entries from the index as it reaches them and does not
  yield them. Entries with no `expires_at_millis` are yielded as they are.
- `is_expired(entry)` reports whether a `Metadata` entry has an
  `expires_at_millis` value in the past.

`read(cache, key)` and `write(cache, key, data, ttl)` are the asynchronous
forms. They run the synchronous calls in a worker thread:

```python
from datetime import timedelta

from ttlcache import ttl

async def example():
    await ttl.write("./cache", "key", b"value", timedelta(seconds=60))
    return await ttl.read("./cache", "key")
```

### Existing metadata

Writing a key again with a TTL keeps the JSON metadata and the raw metadata
the key already had. Only `expires_at_millis` is added or updated. If the
earlier JSON metadata was not an object, it is replaced by an object that
holds only `expires_at_millis`.

## The underlying store: `ttlcache.store`

The store has no notion of expiry. Entries written through it never expire.

- `write_hash(cache, data)` stores content without indexing it and returns
  its integrity string.
- `insert(cache, key, integrity, size=0, metadata=None, raw_metadata=None)`
  adds an index entry that points at content already stored.
- `write(cache, key, data)` stores content and indexes it under `key`.
- `metadata(cache, key)` returns the current `Metadata` for `key`, or `None`.
- `read(cache, key)` returns the content and checks it against its
  integrity string.
- `remove(cache, key)` removes `key` from the index.
- `list_entries(cache)` yields every live index entry.

`Metadata` is a frozen dataclass with the fields `key`, `integrity`, `size`,
`time` (the insertion time in milliseconds), `metadata` and `raw_metadata`.

## Errors

`ttlcache.errors.EntryNotFoundOrExpiredError` is raised for a missing or
expired entry. It has `cache` and `key` attributes. Other store failures
raise `ttlcache.errors.CacheError`, the base class of both. These failures
are an unsupported or malformed integrity string, missing content, and
content that fails its integrity check.

## What it does not do

Removing a key, directly or because it expired, only updates the index. The
stored content stays on disk, and there is no garbage collection or
compaction of content or index files. The package is a library only and
provides no command-line tool.

## Tests

The test suite uses pytest and pytest-asyncio. Both are in the `test` extra.