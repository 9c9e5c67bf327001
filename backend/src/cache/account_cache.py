"""Account caching for token authentication without a database round trip."""
import json
import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from cache.utils import parse_uuid
from core.tokens import InvalidTokenError, decode_token
from models.account import Account
from schemas.cached_account import CachedAccount, CachedProfile

if TYPE_CHECKING:
    from core.config import Settings
    from core.redis import RedisClient

logger = logging.getLogger(__name__)

# Cache schema version - included in all cache keys (e.g., "account:v1:...")
#
# Bump this version when CachedAccount fields are added, removed, or renamed.
# Entries are written without expiry, so old-schema keys are simply never read
# again and can be swept offline.
CACHE_SCHEMA_VERSION = 1


class AccountCache:
    """
    Read-through cache of account projections keyed by user id.

    Entries have no TTL. They are replaced only when invalidate() is called,
    which must happen whenever password_version or the profile changes.
    """

    def __init__(self, redis_client: "RedisClient") -> None:
        """Initialize account cache with Redis client."""
        self._redis = redis_client

    def _cache_key(self, user_id: str) -> str:
        """Generate cache key for a user id."""
        return f"account:v{CACHE_SCHEMA_VERSION}:{user_id}"

    async def get(self, db: AsyncSession, user_id: str) -> CachedAccount | None:
        """
        Get the account projection for a user, loading it on a cache miss.

        Args:
            db: Database session used only on a miss.
            user_id: The account/user id as carried in tokens.

        Returns:
            CachedAccount, or None if no account exists.
        """
        key = self._cache_key(user_id)
        data = await self._redis.get(key)
        if data:
            logger.debug("account_cache_hit user_id=%s", user_id)
            return CachedAccount.from_dict(json.loads(data))
        logger.debug("account_cache_miss user_id=%s", user_id)

        account_id = parse_uuid(user_id)
        if account_id is None:
            return None
        result = await db.execute(
            select(Account)
            .options(joinedload(Account.user))
            .where(Account.id == account_id),
        )
        account = result.scalar_one_or_none()
        if account is None:
            return None

        cached = CachedAccount(
            id=str(account.id),
            password_version=account.password_version,
            user=CachedProfile(
                username=account.user.username,
                tag=account.user.tag,
                avatar=account.user.avatar,
            ),
        )
        await self._redis.set(key, json.dumps(cached.to_dict()))
        logger.debug("account_cache_set user_id=%s", user_id)
        return cached

    async def authenticate(
        self,
        db: AsyncSession,
        token: str,
        settings: "Settings",
    ) -> CachedAccount:
        """
        Resolve a bearer token to its account.

        The token's password version must equal the cached one exactly; this is
        the only mechanism revoking tokens after a credential change.

        Raises:
            InvalidTokenError: If the token does not verify, the account does not
                exist, or the password version does not match.
        """
        claims = decode_token(token, settings)
        if claims is None:
            raise InvalidTokenError
        account = await self.get(db, claims.user_id)
        if account is None:
            raise InvalidTokenError
        if account.password_version != claims.password_version:
            logger.info("token_password_version_mismatch user_id=%s", claims.user_id)
            raise InvalidTokenError
        return account

    async def invalidate(self, user_id: str) -> None:
        """
        Evict a cached account.

        Should be called when password_version or profile fields change.
        """
        await self._redis.delete(self._cache_key(user_id))
        logger.debug("account_cache_invalidate user_id=%s", user_id)


# Global account cache instance (set during app startup)
_account_cache: AccountCache | None = None


def get_account_cache() -> AccountCache | None:
    """Get the global account cache instance."""
    return _account_cache


def set_account_cache(cache: AccountCache | None) -> None:
    """Set the global account cache instance."""
    global _account_cache  # noqa: PLW0603
    _account_cache = cache
