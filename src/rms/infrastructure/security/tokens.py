from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from rms.application.ports.security import (
    InvalidTokenError,
    TokenClaims,
    TokenCodec,
    TokenExpiredError,
)
from rms.domain.common.ids import UserId
from rms.domain.identity.entities import User

ALGORITHM = "HS256"


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET is not set")
    return secret


def _expire_minutes() -> int:
    return int(os.getenv("JWT_EXPIRE_MINUTES", "480"))


class JwtTokenCodec(TokenCodec):
    """HS256 bearer tokens; `token_version` lets a user revoke every live token."""

    def __init__(self, secret: str | None = None, expire_minutes: int | None = None) -> None:
        self._secret = secret or _jwt_secret()
        self._expire_minutes = expire_minutes or _expire_minutes()

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": str(user.user_id),
            "email": user.email,
            "role": user.role.value,
            "username": user.username,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "token_version": user.token_version,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError("invalid token") from exc

        try:
            return TokenClaims(
                user_id=UserId(str(payload["sub"])),
                role=str(payload.get("role", "")),
                token_version=int(payload.get("token_version", 0)),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError("malformed token claims") from exc
