"""Walk through basic set, get, overwrite and delete on a DiskCache."""

from __future__ import annotations

import argparse

from shardcache.cache import CacheMiss, Config, DiskCache

DEFAULT_CACHE_DIR = "./example_cache"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Demonstrate basic DiskCache operations."
    )
    parser.add_argument(
        "--cache-dir",
        default=DEFAULT_CACHE_DIR,
        help=f"directory for the cache files (default: {DEFAULT_CACHE_DIR})",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the example and return the exit status."""
    args = _parse_args(argv)
    config = Config(
        cache_dir=args.cache_dir,
        max_size=10 * 1024 * 1024,
        ttl=60 * 60,
        cleanup_interval=5 * 60,
    )

    with DiskCache(config) as cache:
        print("DiskCache example started...")

        print("\n1. Basic Set and Get:")
        cache.set("greeting", b"Hello, World!")
        print(f"Got: {cache.get('greeting').decode()}")

        print("\n2. Overwrite:")
        cache.set("greeting", b"Hello, DiskCache!")
        print(f"After overwrite: {cache.get('greeting').decode()}")

        print("\n3. Delete:")
        cache.delete("greeting")
        try:
            cache.get("greeting")
        except CacheMiss as exc:
            print(f"Key deleted successfully (expected error): {exc}")

        print("\nExample completed successfully!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())