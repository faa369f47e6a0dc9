"""A content-addressable on-disk cache with a key index."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
import tempfile
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ttlcache.errors import CacheError, EntryNotFoundOrExpiredError

_CONTENT_DIR = "content-v2"
_INDEX_DIR = "index-v5"
_DEFAULT_ALGORITHM = "sha256"
_ALGORITHMS = ("sha1", "sha256", "sha384", "sha512")

PathLike = str | os.PathLike


@dataclass(frozen=True)
class Metadata:
    """One index entry: where the content lives and what is known about it."""

    key: str
    integrity: str
    size: int
    time: int
    metadata: Any = None
    raw_metadata: bytes | None = None


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def _integrity_of(data: bytes, algorithm: str = _DEFAULT_ALGORITHM) -> str:
    digest = hashlib.new(algorithm, data).digest()
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


def _parse_integrity(integrity: str) -> tuple[str, bytes]:
    algorithm, sep, encoded = integrity.partition("-")
    if not sep or algorithm not in _ALGORITHMS:
        raise CacheError(f"unsupported integrity string: {integrity!r}")
    try:
        digest = base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise CacheError(f"malformed integrity string: {integrity!r}") from exc
    if len(digest) != hashlib.new(algorithm).digest_size:
        raise CacheError(f"malformed integrity string: {integrity!r}")
    return algorithm, digest


def _content_path(cache: Path, integrity: str) -> Path:
    algorithm, digest = _parse_integrity(integrity)
    hexdigest = digest.hex()
    return cache / _CONTENT_DIR / algorithm / hexdigest[:2] / hexdigest[2:4] / hexdigest[4:]


def _bucket_path(cache: Path, key: str) -> Path:
    hexdigest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return cache / _INDEX_DIR / hexdigest[:2] / hexdigest[2:4] / hexdigest[4:]


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _append_record(cache: Path, record: dict[str, Any]) -> None:
    bucket = _bucket_path(cache, record["key"])
    bucket.parent.mkdir(parents=True, exist_ok=True)
    with bucket.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record, separators=(",", ":")) + "\n")


def _read_records(bucket: Path) -> Iterator[dict[str, Any]]:
    try:
        text = bucket.read_text(encoding="utf-8")
    except FileNotFoundError:
        return
    for line in text.splitlines():
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(record, dict) and isinstance(record.get("key"), str):
            yield record


def _to_metadata(record: dict[str, Any]) -> Metadata | None:
    if record.get("integrity") is None:
        return None
    raw = record.get("raw_metadata")
    return Metadata(
        key=record["key"],
        integrity=record["integrity"],
        size=record.get("size", 0),
        time=record.get("time", 0),
        metadata=record.get("metadata"),
        raw_metadata=base64.b64decode(raw) if raw is not None else None,
    )


def write_hash(cache: PathLike, data: bytes) -> str:
    """Store content without indexing it and return its integrity string."""
    data = bytes(data)
    integrity = _integrity_of(data)
    path = _content_path(Path(cache), integrity)
    if not path.exists():
        _atomic_write(path, data)
    return integrity


def insert(
    cache: PathLike,
    key: str,
    integrity: str,
    size: int = 0,
    metadata: Any = None,
    raw_metadata: bytes | None = None,
) -> str:
    """Add an index entry for ``key`` pointing at existing content."""
    _parse_integrity(integrity)
    record = {
        "key": key,
        "integrity": integrity,
        "time": _now_millis(),
        "size": size,
        "metadata": metadata,
        "raw_metadata": (
            base64.b64encode(bytes(raw_metadata)).decode("ascii")
            if raw_metadata is not None
            else None
        ),
    }
    _append_record(Path(cache), record)
    return integrity


def write(cache: PathLike, key: str, data: bytes) -> str:
    """Store content and index it under ``key``; return its integrity string."""
    data = bytes(data)
    integrity = write_hash(cache, data)
    insert(cache, key, integrity, len(data))
    return integrity


def metadata(cache: PathLike, key: str) -> Metadata | None:
    """Return the current index entry for ``key``, or None if there is none."""
    latest = None
    for record in _read_records(_bucket_path(Path(cache), key)):
        if record["key"] == key:
            latest = record
    return _to_metadata(latest) if latest is not None else None


def read(cache: PathLike, key: str) -> bytes:
    """Return the content indexed under ``key``, verifying its integrity."""
    entry = metadata(cache, key)
    if entry is None:
        raise EntryNotFoundOrExpiredError(cache, key)
    path = _content_path(Path(cache), entry.integrity)
    try:
        data = path.read_bytes()
    except FileNotFoundError as exc:
        raise CacheError(f"content for key {key!r} is missing") from exc
    algorithm, _ = _parse_integrity(entry.integrity)
    if _integrity_of(data, algorithm) != entry.integrity:
        raise CacheError(f"integrity check failed for key {key!r}")
    return data


def remove(cache: PathLike, key: str) -> None:
    """Remove ``key`` from the index; the content itself is kept."""
    _append_record(
        Path(cache),
        {"key": key, "integrity": None, "time": _now_millis(), "size": 0,
         "metadata": None, "raw_metadata": None},
    )


def list_entries(cache: PathLike) -> Iterator[Metadata]:
    """Yield every live index entry in the cache."""
    index_root = Path(cache) / _INDEX_DIR
    if not index_root.is_dir():
        return
    for bucket in sorted(p for p in index_root.rglob("*") if p.is_file()):
        latest: dict[str, dict[str, Any]] = {}
        for record in _read_records(bucket):
            latest[record["key"]] = record
        for record in latest.values():
            entry = _to_metadata(record)
            if entry is not None:
                yield entry