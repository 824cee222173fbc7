from functools import lru_cache

from redis.asyncio import Redis

from loandesk.core.settings import settings


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    if not settings.redis_url:
        raise RuntimeError("REDIS_URL is not configured")
    return Redis.from_url(settings.redis_url, decode_responses=True, socket_timeout=2)
