from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rms.application.use_cases.auth import AuthenticateToken
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from rms.infrastructure.security.tokens import JwtTokenCodec

bearer_scheme = HTTPBearer(auto_error=False)

STAFF = (Role.ADMIN, Role.MANAGER, Role.CASHIER, Role.WAITER, Role.CHEF)
MANAGEMENT = (Role.ADMIN, Role.MANAGER)
FRONT_OF_HOUSE = (Role.WAITER, Role.CASHIER, Role.ADMIN, Role.MANAGER)
KITCHEN = (Role.CHEF, Role.ADMIN, Role.MANAGER, Role.CASHIER)
COOKS = (Role.CHEF, Role.ADMIN, Role.MANAGER)
BILLING = (Role.CASHIER, Role.ADMIN, Role.MANAGER)


def _authenticate_use_case() -> AuthenticateToken:
    return AuthenticateToken(
        user_repository=SqlAlchemyUserRepository(),
        token_codec=JwtTokenCodec(),
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _authenticate_use_case().execute(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., User]:
    allowed = frozenset(roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"role {user.role.value} is not permitted for this operation",
            )
        return user

    return dependency
