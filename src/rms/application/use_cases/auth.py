from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from rms.application.dto.requests import (
    ChangePasswordRequest,
    LoginRequest,
    UpdateProfileRequest,
)
from rms.application.dto.responses import AuthTokenResponse, MessageResponse, UserResponse
from rms.application.mappers.user_mapper import to_user_response
from rms.application.metrics.order_lifecycle import record_login
from rms.application.ports.repositories import DuplicateKeyError, UserRepository
from rms.application.ports.security import (
    InvalidTokenError,
    PasswordHasher,
    TokenCodec,
    TokenExpiredError,
)
from rms.application.use_cases.audit_trail import AuditTrail
from rms.application.use_cases.context import RequestOrigin
from rms.application.use_cases.users import (
    DuplicateUserError,
    apply_profile_changes,
    ensure_password_strength,
)
from rms.domain.identity.entities import AuditAction, User


class MissingCredentialsError(Exception):
    pass


class InvalidCredentialsError(Exception):
    pass


class AccountDisabledError(Exception):
    pass


class TokenRejectedError(Exception):
    pass


class SessionRevokedError(Exception):
    pass


class Login:
    def __init__(
        self,
        user_repository: UserRepository,
        password_hasher: PasswordHasher,
        token_codec: TokenCodec,
        audit_trail: AuditTrail,
    ) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher
        self._token_codec = token_codec
        self._audit = audit_trail

    def execute(self, request_dto: LoginRequest, origin: RequestOrigin) -> AuthTokenResponse:
        email = request_dto.email.strip().lower()
        if not email or not request_dto.password:
            raise MissingCredentialsError("email and password are required")

        user = self._user_repository.get_by_email(email)
        if user is None:
            self._fail(None, origin, email, "unknown_user")
            raise InvalidCredentialsError("invalid email or password")
        if not self._password_hasher.verify(request_dto.password, user.password_hash):
            self._fail(user, origin, email, "bad_password")
            raise InvalidCredentialsError("invalid email or password")
        if not user.is_active:
            self._fail(user, origin, email, f"account_{user.status.value}")
            raise AccountDisabledError(f"account is {user.status.value}")

        logged_in = replace(user, last_login=datetime.now(timezone.utc))
        self._user_repository.update(logged_in)
        self._audit.record(AuditAction.LOGIN, user.user_id, success=True, origin=origin)
        record_login("success")
        return AuthTokenResponse(
            token=self._token_codec.issue(logged_in),
            user=to_user_response(logged_in),
        )

    def _fail(self, user: User | None, origin: RequestOrigin, email: str, reason: str) -> None:
        self._audit.record(
            AuditAction.LOGIN_FAILED,
            user.user_id if user else None,
            success=False,
            origin=origin,
            details={"email": email, "reason": reason},
        )
        record_login(reason)


class AuthenticateToken:
    """Resolves a bearer token to the current, still valid user."""

    def __init__(self, user_repository: UserRepository, token_codec: TokenCodec) -> None:
        self._user_repository = user_repository
        self._token_codec = token_codec

    def execute(self, token: str) -> User:
        try:
            claims = self._token_codec.decode(token)
        except TokenExpiredError as exc:
            raise TokenRejectedError("token expired") from exc
        except InvalidTokenError as exc:
            raise TokenRejectedError("invalid token") from exc

        user = self._user_repository.get(claims.user_id)
        if user is None or not user.is_active:
            raise SessionRevokedError("user not found or inactive")
        if user.token_version != claims.token_version:
            raise SessionRevokedError("token has been revoked")
        return user


class GetProfile:
    def execute(self, user: User) -> UserResponse:
        return to_user_response(user)


class UpdateProfile:
    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    def execute(self, user: User, request_dto: UpdateProfileRequest) -> UserResponse:
        updated = apply_profile_changes(user, request_dto)
        if updated.email != user.email:
            existing = self._user_repository.get_by_email(updated.email)
            if existing is not None and existing.user_id != user.user_id:
                raise DuplicateUserError(f"email {updated.email} is already registered")
        try:
            self._user_repository.update(updated)
        except DuplicateKeyError as exc:
            raise DuplicateUserError("username or email already exists") from exc
        return to_user_response(updated)


class ChangePassword:
    def __init__(
        self,
        user_repository: UserRepository,
        password_hasher: PasswordHasher,
        token_codec: TokenCodec,
        audit_trail: AuditTrail,
    ) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher
        self._token_codec = token_codec
        self._audit = audit_trail

    def execute(
        self,
        user: User,
        request_dto: ChangePasswordRequest,
        origin: RequestOrigin,
    ) -> AuthTokenResponse:
        if not self._password_hasher.verify(request_dto.current_password, user.password_hash):
            self._audit.record(
                AuditAction.PASSWORD_CHANGED,
                user.user_id,
                success=False,
                origin=origin,
                details={"reason": "bad_current_password"},
            )
            raise InvalidCredentialsError("current password is incorrect")
        ensure_password_strength(request_dto.new_password)

        updated = user.with_password(self._password_hasher.hash(request_dto.new_password))
        self._user_repository.update(updated)
        self._audit.record(AuditAction.PASSWORD_CHANGED, user.user_id, success=True, origin=origin)
        return AuthTokenResponse(
            token=self._token_codec.issue(updated),
            user=to_user_response(updated),
        )


class LogoutAll:
    def __init__(self, user_repository: UserRepository, audit_trail: AuditTrail) -> None:
        self._user_repository = user_repository
        self._audit = audit_trail

    def execute(self, user: User, origin: RequestOrigin) -> MessageResponse:
        self._user_repository.update(user.revoke_sessions())
        self._audit.record(AuditAction.LOGOUT_ALL, user.user_id, success=True, origin=origin)
        return MessageResponse(message="all sessions have been revoked")
