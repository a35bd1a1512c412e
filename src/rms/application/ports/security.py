from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from rms.domain.common.ids import UserId
from rms.domain.identity.entities import User


@dataclass(frozen=True)
class TokenClaims:
    user_id: UserId
    role: str
    token_version: int


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class TokenCodec(Protocol):
    def issue(self, user: User) -> str: ...

    def decode(self, token: str) -> TokenClaims: ...


class TokenExpiredError(Exception):
    pass


class InvalidTokenError(Exception):
    pass
