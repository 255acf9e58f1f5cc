"""
Token revocation backed by Redis.

Two kinds of keys are kept, both expiring with the token lifetime:
- one per revoked token (logout);
- one per user whose tokens were all revoked (account deactivated).
"""

import logging
from backend.app.core import redis_client as redis_module
from backend.app.core.config import settings

logger = logging.getLogger("parcel_tracker.auth")

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _ttl_seconds() -> int:
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: int) -> bool:
    """Blacklist a single token; returns False if Redis is unavailable."""
    try:
        await redis_module.redis_client.set(f"{TOKEN_BLACKLIST_PREFIX}{token}", str(user_id), ex=_ttl_seconds())
        return True
    except Exception as e:
        logger.warning("Could not revoke token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    try:
        return await redis_module.redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except Exception as e:
        # Fail open: an unreachable Redis must not lock every user out
        logger.warning("Token revocation check failed: %s", e)
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """Mark every outstanding token of a user as revoked."""
    try:
        await redis_module.redis_client.set(f"{USER_TOKENS_PREFIX}{user_id}:revoked", "1", ex=_ttl_seconds())
        return True
    except Exception as e:
        logger.warning("Could not revoke tokens for user %s: %s", user_id, e)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    try:
        return await redis_module.redis_client.exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked") > 0
    except Exception as e:
        logger.warning("User revocation check failed for %s: %s", user_id, e)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """Lift a user-wide revocation (account reactivated)."""
    try:
        await redis_module.redis_client.delete(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
        return True
    except Exception as e:
        logger.warning("Could not clear token revocation for user %s: %s", user_id, e)
        return False
