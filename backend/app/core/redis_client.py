"""
Redis client used for the token blacklist.

redis.from_url does not connect until the first command, so importing this
module never touches the network.
"""

import redis.asyncio as redis
from backend.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """Return True when Redis answers a PING."""
    try:
        return bool(await redis_client.ping())
    except Exception:
        return False
