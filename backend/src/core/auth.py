"""Bearer token authentication for HTTP requests."""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cache.account_cache import AccountCache, get_account_cache
from core.config import Settings, get_settings
from core.tokens import InvalidTokenError
from db.session import get_async_session
from schemas.cached_account import CachedAccount

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def require_account_cache() -> AccountCache:
    """Resolve the account cache set up at startup."""
    cache = get_account_cache()
    if cache is None:
        raise RuntimeError("Account cache is not initialized")
    return cache


async def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    account_cache: AccountCache = Depends(require_account_cache),
    settings: Settings = Depends(get_settings),
) -> CachedAccount:
    """
    Authenticate the request's bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return await account_cache.authenticate(db, credentials.credentials, settings)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
