from typing import AsyncIterator, Optional
from redis.asyncio import Redis
from loguru import logger

from src.core.config import RedisSettings


class RedisManager:
    """
    Owns the Redis connection for a hosting process.

    Keys written by the albums package are namespaced with ``key_prefix``.
    """
    def __init__(self, settings: Optional[RedisSettings] = None):
        self.settings = settings or RedisSettings()
        self.client: Redis = None

    def init(self):
        try:
            self.client = Redis.from_url(self.settings.url, decode_responses=True)
            logger.info(f"Connected to Redis: {self.settings.url} (prefix: {self.settings.key_prefix})")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise e

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            logger.info("Redis connection closed.")
        self.client = None

    def key(self, name: str) -> str:
        """Prefix a key name, e.g. ``albums:recent:10`` -> ``mmt:albums:recent:10``."""
        return prefixed_key(self.settings.key_prefix, name)

    async def scan_keys(self, pattern: str = "*", count: int = 2500) -> AsyncIterator[str]:
        """Iterate keys under the configured prefix matching ``pattern``."""
        if self.client is None:
            raise RuntimeError("Redis not initialized. Call init() first.")
        async for key in self.client.scan_iter(match=self.key(pattern), count=count):
            yield key


def prefixed_key(prefix: Optional[str], name: str) -> str:
    if not prefix:
        return name
    return f"{prefix.rstrip(':')}:{name}"
