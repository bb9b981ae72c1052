"""Sharded on-disk cache with LRU eviction and TTL expiry."""

from __future__ import annotations

import hashlib
import logging
import os
import queue
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field

SHARD_COUNT = 16  # must be a power of two
EVICT_QUEUE_SIZE = 512

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_FNV_HASH_BYTES = 8
_STOP = object()

logger = logging.getLogger(__name__)


class CacheMiss(KeyError):
    """Raised when a key is absent from the cache or has expired."""


@dataclass(frozen=True)
class Config:
    """Cache settings. ``ttl`` and ``cleanup_interval`` are in seconds."""

    cache_dir: str | os.PathLike[str]
    max_size: int
    ttl: float
    cleanup_interval: float


@dataclass
class _Entry:
    key: str
    path: str
    size: int
    created_at: float
    accessed_at: float


@dataclass
class _Shard:
    lock: threading.Lock = field(default_factory=threading.Lock)
    entries: "OrderedDict[str, _Entry]" = field(default_factory=OrderedDict)
    size: int = 0


def _shard_index(key: str) -> int:
    """FNV-1a over the first eight bytes of the key, reduced to a shard number."""
    prefix = key.encode("utf-8")[:_FNV_HASH_BYTES]
    if not prefix:
        return 0
    h = _FNV_OFFSET
    for byte in prefix:
        h = ((h ^ byte) * _FNV_PRIME) & 0xFFFFFFFF
    return h & (SHARD_COUNT - 1)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


def build_cache_key(file_url: str, block_index: int) -> str:
    """Build a cache key from a file URL and a block index."""
    if block_index < 0:
        raise ValueError(f"block index must not be negative, got {block_index}")
    digest = hashlib.md5(file_url.encode("utf-8")).hexdigest()
    return f"{digest}_{block_index}"


class DiskCache:
    """A sharded disk cache with LRU eviction, TTL expiry and background file removal.

    Existing files in the cache directory are indexed on start-up; expired ones
    are scheduled for deletion.
    """

    def __init__(self, config: Config | None) -> None:
        if config is None:
            raise ValueError("config is required")
        if not config.cache_dir:
            raise ValueError("cache directory is empty")
        if config.max_size <= 0:
            raise ValueError(f"max size must be positive, got {config.max_size}")
        if config.ttl <= 0:
            raise ValueError(f"ttl must be positive, got {config.ttl}")
        if config.cleanup_interval <= 0:
            raise ValueError(
                f"cleanup interval must be positive, got {config.cleanup_interval}"
            )
        os.makedirs(config.cache_dir, mode=0o755, exist_ok=True)

        self._base_dir = os.fspath(config.cache_dir)
        self._max_size = config.max_size
        self._ttl = config.ttl
        self._cleanup_interval = config.cleanup_interval
        self._shards = [_Shard() for _ in range(SHARD_COUNT)]
        self._total_lock = threading.Lock()
        self._evict_queue: queue.Queue = queue.Queue(maxsize=EVICT_QUEUE_SIZE)
        self._stop = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False

        self._load_index()

        self._threads = [
            threading.Thread(target=self._cleanup_loop, daemon=True),
            threading.Thread(target=self._evict_worker, daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def __enter__(self) -> DiskCache:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total

    def size(self) -> int:
        """Total size in bytes of all cached entries."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += shard.size
        return total

    def _shard(self, key: str) -> _Shard:
        return self._shards[_shard_index(key)]

    def _file_path(self, key: str) -> str:
        return os.path.join(self._base_dir, key)

    def get(self, key: str) -> bytes:
        """Return the data stored under ``key``; raise CacheMiss if absent or expired."""
        shard = self._shard(key)
        with shard.lock:
            entry = shard.entries.get(key)
            if entry is None:
                raise CacheMiss(key)
            created_at = entry.created_at
            path = entry.path

        if time.time() - created_at > self._ttl:
            self.delete(key)
            raise CacheMiss(key)

        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError:
            self.delete(key)
            raise

        # A concurrent set may have replaced the entry while the file was read.
        with shard.lock:
            live = shard.entries.get(key)
            if live is not None:
                shard.entries.move_to_end(key)
                live.accessed_at = time.time()
        return data

    def set(self, key: str, data: bytes) -> None:
        """Write ``data`` under ``key``, evicting least recently used entries if needed."""
        size = len(data)
        self._evict_if_needed(size)
        path = self._file_path(key)
        with open(path, "wb") as fh:
            fh.write(data)
        now = time.time()
        shard = self._shard(key)
        with shard.lock:
            old = shard.entries.pop(key, None)
            if old is not None:
                shard.size -= old.size
            shard.entries[key] = _Entry(key, path, size, now, now)
            shard.size += size

    def delete(self, key: str) -> None:
        """Remove ``key`` and its file. Deleting a missing key does nothing."""
        shard = self._shard(key)
        with shard.lock:
            entry = shard.entries.pop(key, None)
            if entry is None:
                return
            shard.size -= entry.size
        try:
            os.remove(entry.path)
        except FileNotFoundError:
            pass

    def cleanup(self) -> None:
        """Drop every entry older than the TTL and schedule its file for removal."""
        now = time.time()
        for shard in self._shards:
            with shard.lock:
                expired = [
                    entry
                    for entry in shard.entries.values()
                    if now - entry.created_at > self._ttl
                ]
                for entry in expired:
                    del shard.entries[entry.key]
                    shard.size -= entry.size
            for entry in expired:
                self._schedule_removal(entry.path)

    def close(self) -> None:
        """Stop the background threads and wait for them. Safe to call repeatedly."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            self._stop.set()
            self._evict_queue.put(_STOP)
            for thread in self._threads:
                thread.join()

    def _schedule_removal(self, path: str) -> None:
        if self._closed:
            _remove_quietly(path)
            return
        try:
            self._evict_queue.put_nowait(path)
        except queue.Full:
            _remove_quietly(path)

    def _find_oldest(self) -> tuple[_Shard, _Entry] | None:
        oldest: tuple[_Shard, _Entry] | None = None
        for shard in self._shards:
            with shard.lock:
                front = next(iter(shard.entries.values()), None)
            if front is not None and (
                oldest is None or front.accessed_at < oldest[1].accessed_at
            ):
                oldest = (shard, front)
        return oldest

    def _evict_one(self, shard: _Shard, entry: _Entry) -> int:
        with shard.lock:
            live = shard.entries.pop(entry.key, None)
            if live is None:
                return 0
            shard.size -= live.size
        self._schedule_removal(live.path)
        return live.size

    def _evict_if_needed(self, new_size: int) -> None:
        with self._total_lock:
            total = self.size()
            while total + new_size > self._max_size:
                oldest = self._find_oldest()
                if oldest is None:
                    break
                total -= self._evict_one(*oldest)

    def _evict_worker(self) -> None:
        while True:
            item = self._evict_queue.get()
            if item is not _STOP:
                _remove_quietly(item)
                continue
            drained = 0
            while True:
                try:
                    item = self._evict_queue.get_nowait()
                except queue.Empty:
                    break
                if item is not _STOP:
                    _remove_quietly(item)
                    drained += 1
            if drained:
                logger.info("evict worker: drained %d pending evictions on stop", drained)
            return

    def _cleanup_loop(self) -> None:
        while not self._stop.wait(self._cleanup_interval):
            self.cleanup()

    def _scan_dir(self, now: float) -> tuple[list[_Entry], list[str]]:
        entries: list[_Entry] = []
        expired: list[str] = []
        with os.scandir(self._base_dir) as it:
            for item in it:
                if item.is_dir():
                    continue
                stat = item.stat()
                if now - stat.st_mtime > self._ttl:
                    expired.append(item.path)
                    continue
                entries.append(
                    _Entry(item.name, item.path, stat.st_size, stat.st_mtime, stat.st_mtime)
                )
        return entries, expired

    def _queue_expired(self, paths: list[str]) -> None:
        if not paths:
            return
        logger.info("load index: found %d expired files, queuing for deletion", len(paths))
        for path in paths:
            try:
                self._evict_queue.put_nowait(path)
            except queue.Full:
                try:
                    os.remove(path)
                except FileNotFoundError:
                    pass
                except OSError as exc:
                    logger.warning("load index: failed to delete expired file %s: %s", path, exc)

    def _load_index(self) -> None:
        entries, expired = self._scan_dir(time.time())
        self._queue_expired(expired)
        entries.sort(key=lambda entry: entry.created_at)
        for entry in entries:
            shard = self._shard(entry.key)
            shard.entries[entry.key] = entry
            shard.size += entry.size