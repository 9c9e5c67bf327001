"""Bearer token issuing and verification."""
import logging
from dataclasses import dataclass

import jwt

from core.config import Settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """
    Raised when a bearer token cannot be used to authenticate.

    Covers a token that fails verification, one that references an unknown
    account, and one issued before the account's last credential change. The
    message is the same in every case so callers cannot tell which one applied.
    """

    def __init__(self) -> None:
        super().__init__("Invalid token.")


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by a session token."""

    user_id: str
    password_version: int


def create_token(user_id: str, password_version: int, settings: Settings) -> str:
    """Issue a signed session token for an account at its current password version."""
    return jwt.encode(
        {"sub": user_id, "pv": password_version},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str, settings: Settings) -> TokenClaims | None:
    """
    Verify a session token and extract its claims.

    Returns:
        TokenClaims if the signature is valid and the claims are well formed,
        None otherwise. Has no side effects.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub"]},
        )
    except jwt.PyJWTError as e:
        logger.debug("token_decode_failed error=%s", e)
        return None

    user_id = payload.get("sub")
    password_version = payload.get("pv")
    # bool is an int subclass; a token carrying true/false is malformed
    if (
        not isinstance(user_id, str)
        or not isinstance(password_version, int)
        or isinstance(password_version, bool)
    ):
        return None
    return TokenClaims(user_id=user_id, password_version=password_version)
