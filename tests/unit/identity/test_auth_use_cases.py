from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.dto.requests import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterUserRequest,
)
from rms.application.ports.security import InvalidTokenError, TokenClaims
from rms.application.use_cases.audit_trail import AuditTrail
from rms.application.use_cases.auth import (
    AccountDisabledError,
    AuthenticateToken,
    ChangePassword,
    InvalidCredentialsError,
    Login,
    LogoutAll,
    MissingCredentialsError,
    SessionRevokedError,
    TokenRejectedError,
)
from rms.application.use_cases.context import RequestOrigin
from rms.application.use_cases.users import (
    DeleteUser,
    InvalidUserInputError,
    RegisterUser,
    UserPermissionError,
)
from rms.domain.common.ids import UserId
from rms.domain.identity.entities import AuditAction, AuditEntry, Role, User, UserStatus

ORIGIN = RequestOrigin(ip_address="10.0.0.8", user_agent="pytest")


class FakeUserRepository:
    def __init__(self, users: list[User]) -> None:
        self.users = {user.user_id: user for user in users}

    def add(self, user: User) -> None:
        self.users[user.user_id] = user

    def get(self, user_id: UserId) -> User | None:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

    def update(self, user: User) -> None:
        self.users[user.user_id] = user


class FakeAuditRepository:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


class PlainHasher:
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{password}"


class FakeTokenCodec:
    def issue(self, user: User) -> str:
        return f"{user.user_id}|{user.role.value}|{user.token_version}"

    def decode(self, token: str) -> TokenClaims:
        try:
            user_id, role, version = token.split("|")
        except ValueError as exc:
            raise InvalidTokenError("malformed") from exc
        return TokenClaims(user_id=UserId(user_id), role=role, token_version=int(version))


def _user(
    user_id: str = "usr_waiter",
    role: Role = Role.WAITER,
    status: UserStatus = UserStatus.ACTIVE,
) -> User:
    return User(
        user_id=UserId(user_id),
        username=user_id,
        email=f"{user_id}@restaurant.com",
        password_hash="hashed:secret1",
        role=role,
        first_name="Emma",
        last_name="Davis",
        phone=None,
        status=status,
        token_version=0,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _login(users: FakeUserRepository, audit: FakeAuditRepository) -> Login:
    return Login(users, PlainHasher(), FakeTokenCodec(), AuditTrail(audit))


def test_login_issues_token_and_audits_success() -> None:
    users = FakeUserRepository([_user()])
    audit = FakeAuditRepository()

    response = _login(users, audit).execute(
        LoginRequest(email=" USR_WAITER@restaurant.com ", password="secret1"), ORIGIN
    )

    assert response.token == "usr_waiter|waiter|0"
    assert response.user.lastLogin is not None
    assert audit.entries[-1].action == AuditAction.LOGIN
    assert audit.entries[-1].ip_address == "10.0.0.8"


def test_login_failures_are_audited_without_revealing_which_part_was_wrong() -> None:
    users = FakeUserRepository([_user(), _user("usr_gone", status=UserStatus.SUSPENDED)])
    audit = FakeAuditRepository()
    login = _login(users, audit)

    with pytest.raises(MissingCredentialsError):
        login.execute(LoginRequest(email="", password=""), ORIGIN)
    with pytest.raises(InvalidCredentialsError) as unknown:
        login.execute(LoginRequest(email="nobody@restaurant.com", password="secret1"), ORIGIN)
    with pytest.raises(InvalidCredentialsError) as wrong:
        login.execute(LoginRequest(email="usr_waiter@restaurant.com", password="nope"), ORIGIN)
    with pytest.raises(AccountDisabledError):
        login.execute(LoginRequest(email="usr_gone@restaurant.com", password="secret1"), ORIGIN)

    assert str(unknown.value) == str(wrong.value)
    reasons = [entry.details["reason"] for entry in audit.entries]
    assert reasons == ["unknown_user", "bad_password", "account_suspended"]


def test_logout_all_revokes_previously_issued_tokens() -> None:
    user = _user()
    users = FakeUserRepository([user])
    token = FakeTokenCodec().issue(user)
    authenticate = AuthenticateToken(users, FakeTokenCodec())
    assert authenticate.execute(token).user_id == user.user_id

    LogoutAll(users, AuditTrail(FakeAuditRepository())).execute(user, ORIGIN)

    with pytest.raises(SessionRevokedError):
        authenticate.execute(token)


def test_authenticate_rejects_malformed_token_and_inactive_user() -> None:
    users = FakeUserRepository([_user(status=UserStatus.INACTIVE)])
    authenticate = AuthenticateToken(users, FakeTokenCodec())

    with pytest.raises(TokenRejectedError):
        authenticate.execute("garbage")
    with pytest.raises(SessionRevokedError):
        authenticate.execute("usr_waiter|waiter|0")


def test_change_password_requires_current_password_and_rotates_token() -> None:
    user = _user()
    users = FakeUserRepository([user])
    use_case = ChangePassword(
        users, PlainHasher(), FakeTokenCodec(), AuditTrail(FakeAuditRepository())
    )

    with pytest.raises(InvalidCredentialsError):
        use_case.execute(
            user, ChangePasswordRequest(current_password="wrong", new_password="another1"), ORIGIN
        )
    with pytest.raises(InvalidUserInputError):
        use_case.execute(
            user, ChangePasswordRequest(current_password="secret1", new_password="abc"), ORIGIN
        )
    response = use_case.execute(
        user, ChangePasswordRequest(current_password="secret1", new_password="another1"), ORIGIN
    )

    assert response.token == "usr_waiter|waiter|1"
    assert users.get(user.user_id).password_hash == "hashed:another1"


def test_manager_cannot_create_admin_and_denial_is_audited() -> None:
    manager = _user("usr_manager", role=Role.MANAGER)
    audit = FakeAuditRepository()
    use_case = RegisterUser(FakeUserRepository([manager]), PlainHasher(), AuditTrail(audit))
    request = RegisterUserRequest(
        username="boss",
        email="boss@restaurant.com",
        password="secret12",
        role="admin",
        first_name="Big",
    )

    with pytest.raises(UserPermissionError):
        use_case.execute(manager, request, ORIGIN)
    assert audit.entries[-1].action == AuditAction.PERMISSION_DENIED

    created = use_case.execute(manager, request.model_copy(update={"role": "chef"}), ORIGIN)
    assert created.role == "chef"
    assert audit.entries[-1].action == AuditAction.USER_CREATED


def test_users_cannot_delete_themselves() -> None:
    admin = _user("usr_admin", role=Role.ADMIN)
    users = FakeUserRepository([admin])
    with pytest.raises(UserPermissionError):
        DeleteUser(users, AuditTrail(FakeAuditRepository())).execute(admin, admin.user_id, ORIGIN)


def test_delete_is_soft_and_revokes_sessions() -> None:
    admin = _user("usr_admin", role=Role.ADMIN)
    waiter = _user()
    users = FakeUserRepository([admin, waiter])

    response = DeleteUser(users, AuditTrail(FakeAuditRepository())).execute(
        admin, waiter.user_id, ORIGIN
    )

    assert response.status == "inactive"
    assert users.get(waiter.user_id).token_version == 1
