"""Password hashing and the signed tokens handed to admins and staff."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from .config import get_settings

ALGORITHM = "HS256"
REFRESH_SCOPE = "refresh"

password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return password_context.verify(password, hashed_password)


@dataclass(frozen=True)
class TokenPair:
    access: str
    refresh: str


def _sign(claims: dict[str, Any], secret: str, lifetime: timedelta) -> str:
    issued_at = datetime.now(tz=timezone.utc)
    return jwt.encode({**claims, "iat": issued_at, "exp": issued_at + lifetime}, secret, algorithm=ALGORITHM)


def issue_token_pair(*, subject: str, actor_type: str, claims: dict[str, Any] | None = None) -> TokenPair:
    """Sign an access token and a refresh token for the same subject."""

    settings = get_settings()
    base = {**(claims or {}), "sub": subject, "actor_type": actor_type}
    return TokenPair(
        access=_sign(
            base,
            settings.JWT_SECRET_KEY,
            timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ),
        refresh=_sign(
            {**base, "scope": REFRESH_SCOPE},
            settings.JWT_REFRESH_SECRET_KEY,
            timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, get_settings().JWT_SECRET_KEY, algorithms=[ALGORITHM])


def decode_refresh_token(token: str) -> dict[str, Any]:
    payload = jwt.decode(token, get_settings().JWT_REFRESH_SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("scope") != REFRESH_SCOPE:
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload
