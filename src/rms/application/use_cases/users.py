from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from rms.application.dto.requests import (
    RegisterUserRequest,
    UpdateProfileRequest,
    ResetPasswordRequest,
    UpdateUserRequest,
)
from rms.application.dto.responses import AuditLogResponse, UserResponse, UserStatsResponse
from rms.application.mappers.user_mapper import to_audit_log_response, to_user_response
from rms.application.ports.repositories import (
    AuditLogRepository,
    DuplicateKeyError,
    UserRepository,
)
from rms.application.ports.security import PasswordHasher
from rms.application.use_cases.audit_trail import AuditTrail
from rms.application.use_cases.context import RequestOrigin
from rms.domain.common.ids import UserId, new_id
from rms.domain.identity.entities import AuditAction, Role, User, UserStatus
from rms.domain.identity.policy import (
    UserPolicyError,
    ensure_can_assign_role,
    ensure_can_manage,
    ensure_not_self,
)

MIN_PASSWORD_LENGTH = 6


class UserNotFoundError(Exception):
    pass


class DuplicateUserError(Exception):
    pass


class InvalidUserInputError(Exception):
    pass


class UserPermissionError(Exception):
    pass


def parse_role(value: str) -> Role:
    try:
        return Role(value.lower())
    except ValueError as exc:
        raise InvalidUserInputError(f"invalid role: {value}") from exc


def parse_user_status(value: str) -> UserStatus:
    try:
        return UserStatus(value.lower())
    except ValueError as exc:
        raise InvalidUserInputError(f"invalid user status: {value}") from exc


def ensure_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidUserInputError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


def _load_user(user_repository: UserRepository, user_id: UserId) -> User:
    user = user_repository.get(user_id)
    if user is None:
        raise UserNotFoundError(f"user {user_id} not found")
    return user


def _guard(
    audit: AuditTrail,
    actor: User,
    origin: RequestOrigin,
    attempted: str,
    check: Callable[[], None],
) -> None:
    try:
        check()
    except UserPolicyError as exc:
        audit.record(
            AuditAction.PERMISSION_DENIED,
            actor.user_id,
            success=False,
            origin=origin,
            details={"attempted": attempted, "reason": str(exc)},
        )
        raise UserPermissionError(str(exc)) from exc


class RegisterUser:
    def __init__(
        self,
        user_repository: UserRepository,
        password_hasher: PasswordHasher,
        audit_trail: AuditTrail,
    ) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher
        self._audit = audit_trail

    def execute(
        self,
        actor: User,
        request_dto: RegisterUserRequest,
        origin: RequestOrigin,
    ) -> UserResponse:
        role = parse_role(request_dto.role)
        _guard(
            self._audit,
            actor,
            origin,
            "user_created",
            lambda: ensure_can_assign_role(actor.role, role),
        )
        ensure_password_strength(request_dto.password)

        email = request_dto.email.strip().lower()
        if not email:
            raise InvalidUserInputError("email is required")
        if self._user_repository.get_by_email(email) is not None:
            raise DuplicateUserError(f"email {email} is already registered")

        user = User(
            user_id=UserId(new_id("usr")),
            username=request_dto.username.strip(),
            email=email,
            password_hash=self._password_hasher.hash(request_dto.password),
            role=role,
            first_name=request_dto.first_name.strip(),
            last_name=request_dto.last_name.strip(),
            phone=request_dto.phone,
            status=UserStatus.ACTIVE,
            token_version=0,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._user_repository.add(user)
        except DuplicateKeyError as exc:
            raise DuplicateUserError("username or email already exists") from exc

        self._audit.record(
            AuditAction.USER_CREATED,
            actor.user_id,
            success=True,
            origin=origin,
            details={"created_user_id": user.user_id, "role": role.value},
        )
        return to_user_response(user)


class ListUsers:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, role: str | None = None, status: str | None = None) -> list[UserResponse]:
        users = self._user_repository.list(
            role=parse_role(role) if role else None,
            status=parse_user_status(status) if status else None,
        )
        return [to_user_response(user) for user in users]


class GetUser:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, user_id: UserId) -> UserResponse:
        return to_user_response(_load_user(self._user_repository, user_id))


class UpdateUser:
    def __init__(self, user_repository: UserRepository, audit_trail: AuditTrail) -> None:
        self._user_repository = user_repository
        self._audit = audit_trail

    def execute(
        self,
        actor: User,
        user_id: UserId,
        request_dto: UpdateUserRequest,
        origin: RequestOrigin,
    ) -> UserResponse:
        target = _load_user(self._user_repository, user_id)
        if actor.user_id != target.user_id:
            _guard(
                self._audit, actor, origin, "user_updated", lambda: ensure_can_manage(actor, target)
            )

        updated = target
        if request_dto.role is not None:
            role = parse_role(request_dto.role)
            if role != target.role:
                _guard(
                    self._audit,
                    actor,
                    origin,
                    "user_updated",
                    lambda: ensure_can_assign_role(actor.role, role),
                )
                updated = replace(updated, role=role)
        if request_dto.status is not None:
            status = parse_user_status(request_dto.status)
            if status != target.status:
                _guard(
                    self._audit,
                    actor,
                    origin,
                    "user_updated",
                    lambda: ensure_not_self(actor, target, "change the status of"),
                )
                updated = updated.with_status(status)
        updated = apply_profile_changes(updated, request_dto)

        try:
            self._user_repository.update(updated)
        except DuplicateKeyError as exc:
            raise DuplicateUserError("username or email already exists") from exc

        self._audit.record(
            AuditAction.USER_UPDATED,
            actor.user_id,
            success=True,
            origin=origin,
            details={"target_user_id": target.user_id},
        )
        return to_user_response(updated)


class DeleteUser:
    """Soft delete: the account becomes inactive and its sessions are revoked."""

    def __init__(self, user_repository: UserRepository, audit_trail: AuditTrail) -> None:
        self._user_repository = user_repository
        self._audit = audit_trail

    def execute(self, actor: User, user_id: UserId, origin: RequestOrigin) -> UserResponse:
        target = _load_user(self._user_repository, user_id)
        _guard(
            self._audit,
            actor,
            origin,
            "user_deleted",
            lambda: ensure_not_self(actor, target, "delete"),
        )
        _guard(
            self._audit, actor, origin, "user_deleted", lambda: ensure_can_manage(actor, target)
        )

        updated = target.with_status(UserStatus.INACTIVE)
        self._user_repository.update(updated)
        self._audit.record(
            AuditAction.USER_DELETED,
            actor.user_id,
            success=True,
            origin=origin,
            details={"target_user_id": target.user_id},
        )
        return to_user_response(updated)


class SuspendUser:
    def __init__(self, user_repository: UserRepository, audit_trail: AuditTrail) -> None:
        self._user_repository = user_repository
        self._audit = audit_trail

    def execute(self, actor: User, user_id: UserId, origin: RequestOrigin) -> UserResponse:
        target = _load_user(self._user_repository, user_id)
        _guard(
            self._audit,
            actor,
            origin,
            "user_suspended",
            lambda: ensure_not_self(actor, target, "suspend"),
        )
        _guard(
            self._audit, actor, origin, "user_suspended", lambda: ensure_can_manage(actor, target)
        )

        updated = target.with_status(UserStatus.SUSPENDED)
        self._user_repository.update(updated)
        self._audit.record(
            AuditAction.USER_SUSPENDED,
            actor.user_id,
            success=True,
            origin=origin,
            details={"target_user_id": target.user_id},
        )
        return to_user_response(updated)


class ResetPassword:
    def __init__(
        self,
        user_repository: UserRepository,
        password_hasher: PasswordHasher,
        audit_trail: AuditTrail,
    ) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher
        self._audit = audit_trail

    def execute(
        self,
        actor: User,
        user_id: UserId,
        request_dto: ResetPasswordRequest,
        origin: RequestOrigin,
    ) -> UserResponse:
        target = _load_user(self._user_repository, user_id)
        if actor.user_id != target.user_id:
            _guard(
                self._audit,
                actor,
                origin,
                "password_reset",
                lambda: ensure_can_manage(actor, target),
            )
        ensure_password_strength(request_dto.new_password)

        updated = target.with_password(self._password_hasher.hash(request_dto.new_password))
        self._user_repository.update(updated)
        self._audit.record(
            AuditAction.PASSWORD_RESET,
            actor.user_id,
            success=True,
            origin=origin,
            details={"target_user_id": target.user_id},
        )
        return to_user_response(updated)


class UserStats:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self) -> UserStatsResponse:
        users = self._user_repository.list()
        return UserStatsResponse(
            total=len(users),
            byRole=dict(Counter(user.role.value for user in users)),
            byStatus=dict(Counter(user.status.value for user in users)),
        )


class ListAuditLogs:
    def __init__(self, audit_repository: AuditLogRepository) -> None:
        self._audit_repository = audit_repository

    def execute(
        self,
        user_id: UserId | None = None,
        action: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLogResponse]:
        if limit < 1 or limit > 500:
            raise InvalidUserInputError("limit must be between 1 and 500")
        if offset < 0:
            raise InvalidUserInputError("offset must be >= 0")
        parsed_action = None
        if action:
            try:
                parsed_action = AuditAction(action)
            except ValueError as exc:
                raise InvalidUserInputError(f"invalid audit action: {action}") from exc
        entries = self._audit_repository.list(
            user_id=user_id,
            action=parsed_action,
            limit=limit,
            offset=offset,
        )
        return [to_audit_log_response(entry) for entry in entries]


class UserActivity:
    def __init__(
        self,
        user_repository: UserRepository,
        audit_repository: AuditLogRepository,
    ) -> None:
        self._user_repository = user_repository
        self._audit_repository = audit_repository

    def execute(self, user_id: UserId, limit: int = 50) -> list[AuditLogResponse]:
        _load_user(self._user_repository, user_id)
        entries = self._audit_repository.list(user_id=user_id, action=None, limit=limit, offset=0)
        return [to_audit_log_response(entry) for entry in entries]


def apply_profile_changes(user: User, request_dto: UpdateProfileRequest) -> User:
    changes = {}
    if request_dto.first_name is not None:
        changes["first_name"] = request_dto.first_name.strip()
    if request_dto.last_name is not None:
        changes["last_name"] = request_dto.last_name.strip()
    if request_dto.phone is not None:
        changes["phone"] = request_dto.phone
    if request_dto.email is not None:
        email = request_dto.email.strip().lower()
        if not email:
            raise InvalidUserInputError("email must not be empty")
        changes["email"] = email
    return replace(user, **changes) if changes else user
