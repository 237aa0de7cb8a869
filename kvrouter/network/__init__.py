"""Network module for KV-Router."""

from .redis_connection import RedisConnection, RedisStoreClient

__all__ = ["RedisConnection", "RedisStoreClient"]
