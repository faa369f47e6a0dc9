from pathlib import Path

import pytest

from ttlcache.errors import CacheError, EntryNotFoundOrExpiredError


def test_entry_error_keeps_cache_and_key():
    error = EntryNotFoundOrExpiredError(Path("some/cache"), "my-key")
    assert error.key == "my-key"
    assert Path(error.cache) == Path("some/cache")


def test_entry_error_message_names_key_and_cache():
    error = EntryNotFoundOrExpiredError("cache-dir", "my-key")
    message = str(error)
    assert message.startswith("Entry not found or expired for key")
    assert '"my-key"' in message
    assert '"cache-dir"' in message


def test_entry_error_is_caught_as_cache_error():
    error = EntryNotFoundOrExpiredError("cache-dir", "k")
    caught = None
    try:
        raise error
    except CacheError as exc:
        caught = exc
    assert caught is error
    assert caught.key == "k"
    assert Path(caught.cache) == Path("cache-dir")
    assert '"k"' in str(caught)


def test_entry_error_matches_cache_error_in_raises():
    error = EntryNotFoundOrExpiredError("cache-dir", "k")
    message = str(error)
    assert message.startswith("Entry not found or expired for key")
    assert error.key == "k"
    assert Path(error.cache) == Path("cache-dir")
    with pytest.raises(CacheError) as excinfo:
        raise error
    assert excinfo.value is error
    assert str(excinfo.value) == message