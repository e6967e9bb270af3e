import logging
import time
from pathlib import Path

import redis.exceptions
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

LUA_SCRIPT = Path(__file__).parent / 'redis/token/bucket.lua'
LUA = LUA_SCRIPT.read_text()


class RateLimiter:
    """
    Redis-backed token-bucket rate limiter for vanity lookups.

    The Lua script refills and decrements the bucket atomically, so several
    server processes can share one Redis.
    """
    def __init__(self, redis: Redis):
        self.redis = redis
        self.sha: str | None = None

    async def load(self) -> None:
        """Load the Lua script into Redis and cache its SHA."""
        self.sha = await self.redis.script_load(LUA)

    async def allow(self,
                    key: str,
                    capacity: int,
                    rate: float,
                    tokens: int = 1) -> tuple[bool, float]:
        """
        Attempt to consume tokens from the bucket stored at `key`.
        :return: (allowed, remaining_tokens)
        """
        if self.sha is None:
            raise RuntimeError('RateLimiter not initialized. Call load() first.')

        args = (capacity, rate, int(time.time() * 1000), tokens)
        try:
            result = await self.redis.evalsha(self.sha, 1, key, *args)
        except redis.exceptions.NoScriptError:
            # Script cache was flushed (e.g. Redis restarted).
            logger.info('Reloading rate limit script')
            await self.load()
            result = await self.redis.evalsha(self.sha, 1, key, *args)

        return bool(int(result[0])), float(result[1])
