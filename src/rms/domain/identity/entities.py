from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from rms.domain.common.ids import AuditLogId, UserId


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"
    WAITER = "waiter"
    CHEF = "chef"


MANAGEMENT_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class AuditAction(str, Enum):
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    LOGOUT_ALL = "logout_all"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_RESET = "password_reset"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_SUSPENDED = "user_suspended"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class User:
    user_id: UserId
    username: str
    email: str
    password_hash: str
    role: Role
    first_name: str
    last_name: str
    phone: str | None
    status: UserStatus
    token_version: int
    created_at: datetime
    last_login: datetime | None = None

    def __post_init__(self) -> None:
        if self.token_version < 0:
            raise ValueError("token_version must be >= 0")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def revoke_sessions(self) -> User:
        return replace(self, token_version=self.token_version + 1)

    def with_password(self, password_hash: str) -> User:
        return replace(self, password_hash=password_hash, token_version=self.token_version + 1)

    def with_status(self, status: UserStatus) -> User:
        if status == UserStatus.ACTIVE:
            return replace(self, status=status)
        return replace(self, status=status, token_version=self.token_version + 1)


@dataclass(frozen=True)
class AuditEntry:
    audit_id: AuditLogId
    user_id: UserId | None
    action: AuditAction
    success: bool
    created_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] | None = None
