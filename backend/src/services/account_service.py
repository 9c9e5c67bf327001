"""Service layer for account credential state."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cache.account_cache import AccountCache
from models.account import Account

logger = logging.getLogger(__name__)


async def revoke_sessions(
    db: AsyncSession,
    account_cache: AccountCache,
    account_id: UUID,
) -> int | None:
    """
    Invalidate every token issued to an account so far.

    Bumps password_version in the database, then evicts the cached account so
    the next authentication reads the new version. Password changes call this
    after storing the new credentials.

    Returns:
        The new password version, or None if the account does not exist.
    """
    account = await db.get(Account, account_id)
    if account is None:
        return None
    account.password_version += 1
    new_version = account.password_version
    await db.commit()

    await account_cache.invalidate(str(account_id))
    logger.info("account_sessions_revoked account_id=%s version=%s", account_id, new_version)
    return new_version
