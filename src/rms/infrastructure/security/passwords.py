from __future__ import annotations

import logging
import os

import bcrypt

from rms.application.ports.security import PasswordHasher

logger = logging.getLogger(__name__)


def _bcrypt_rounds() -> int:
    return int(os.getenv("BCRYPT_ROUNDS", "12"))


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int | None = None) -> None:
        self._rounds = rounds or _bcrypt_rounds()

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(rounds=self._rounds),
        ).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            logger.warning("password_hash_unreadable")
            return False
