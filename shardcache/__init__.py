"""Sharded on-disk byte cache with LRU eviction and TTL expiration."""

__version__ = "0.1.0"
__all__ = ["cache", "example"]