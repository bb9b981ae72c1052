# shardcache

A thread-safe cache that keeps byte blobs as files in a single directory.
Entries expire after a time-to-live. When the total size would exceed a limit,
the least recently used entries are evicted. The in-memory index is split into
16 shards, so writers to different keys rarely wait on the same lock. When the
cache starts, it rebuilds its index from the files already in the directory.

## Installation

```
pip install shardcache
```

The package has no runtime dependencies. To run the tests, install the `test`
extra (`pip install shardcache[test]`).

## Usage

```python
from shardcache.cache import CacheMiss, Config, DiskCache, build_cache_key

config = Config(
    cache_dir="./cache",
    max_size=100 * 1024 * 1024,   # bytes
    ttl=24 * 60 * 60,             # seconds
    cleanup_interval=60 * 60,     # seconds
)

with DiskCache(config) as cache:
    key = build_cache_key("https://example.com/report.pdf", 0)
    cache.set(key, b"block contents")

    print(cache.get(key))       # b'block contents'
    print(len(cache), cache.size())

    cache.delete(key)
    try:
        cache.get(key)
    except CacheMiss:
        print("gone")
```

### Configuration

`Config` is a frozen dataclass with four fields:

- `cache_dir`: the directory for the cache files. It is created if it does not
  exist.
- `max_size`: the size limit in bytes.
- `ttl`: how long an entry lives, in seconds.
- `cleanup_interval`: how often, in seconds, the background sweep for expired
  entries runs.

An invalid configuration raises `ValueError`. This covers a missing config, an
empty directory, and a size, TTL or cleanup interval that is not positive. If
the directory cannot be created or listed, `OSError` is raised.

### Behaviour

- Each key is used directly as a file name inside `cache_dir`, so a key must be
  a valid file name. `build_cache_key` produces keys that always are.
- `get(key)` returns the stored bytes and marks the entry as recently used. It
  raises `CacheMiss`, a subclass of `KeyError`, for a key that is absent or
  has expired. An expired entry is removed when `get` finds it. If the backing
  file has disappeared, `get` drops the entry and re-raises the `OSError`.
- `set(key, data)` writes the file and overwrites any existing value. Before
  writing, it evicts the least recently used entries until the new data fits.
  A single value larger than `max_size` is still stored once everything else
  has been evicted.
- `delete(key)` removes the entry and its file. If the key is missing, it does
  nothing.
- `len(cache)` gives the number of entries. `cache.size()` gives their total
  size in bytes.
- `cleanup()` drops every entry older than the TTL. A background thread calls
  it every `cleanup_interval`.
- Evicted and expired files are deleted by a background worker. If its queue is
  full, or the cache is closed, they are deleted at once.
- `close()` stops the background threads and waits for queued file deletions to
  finish. You can call it more than once. The context manager calls it on
  exit.
- At start-up, only regular files directly inside `cache_dir` are indexed,
  oldest modification time first. Subdirectories are ignored. Files older than
  the TTL are not indexed and are deleted.
- `build_cache_key(file_url, block_index)` returns the MD5 hex digest of the
  URL, then an underscore, then the block index, for example `"<md5-hex>_42"`.
  A negative block index raises `ValueError`.

## Example

The `shardcache.example` module demonstrates set, get, overwrite and delete:

```
shardcache-example
shardcache-example --cache-dir /tmp/demo_cache
```

By default it uses `./example_cache`. The cache files stay in that directory
after the run.

## What it does not do

This is a library for use in a single process. It has no server and no
cross-process locking. It has no command for inspecting or managing an existing
cache directory; the only command is the demonstration above.