from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from rms.api.dependencies import request_origin
from rms.api.security import MANAGEMENT, get_current_user, require_roles
from rms.application.dto.requests import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterUserRequest,
    UpdateProfileRequest,
)
from rms.application.dto.responses import (
    AuthTokenResponse,
    Envelope,
    MessageResponse,
    UserResponse,
)
from rms.application.use_cases.audit_trail import AuditTrail
from rms.application.use_cases.auth import (
    ChangePassword,
    GetProfile,
    Login,
    LogoutAll,
    UpdateProfile,
)
from rms.application.use_cases.users import RegisterUser
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.user_repo import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyUserRepository,
)
from rms.infrastructure.security.passwords import BcryptPasswordHasher
from rms.infrastructure.security.tokens import JwtTokenCodec

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _audit_trail() -> AuditTrail:
    return AuditTrail(audit_repository=SqlAlchemyAuditLogRepository())


def _login_use_case() -> Login:
    return Login(
        user_repository=SqlAlchemyUserRepository(),
        password_hasher=BcryptPasswordHasher(),
        token_codec=JwtTokenCodec(),
        audit_trail=_audit_trail(),
    )


def _change_password_use_case() -> ChangePassword:
    return ChangePassword(
        user_repository=SqlAlchemyUserRepository(),
        password_hasher=BcryptPasswordHasher(),
        token_codec=JwtTokenCodec(),
        audit_trail=_audit_trail(),
    )


@router.post("/login", response_model=Envelope[AuthTokenResponse])
def login(request_dto: LoginRequest, request: Request) -> Envelope[AuthTokenResponse]:
    return Envelope(data=_login_use_case().execute(request_dto, request_origin(request)))


@router.post(
    "/register",
    response_model=Envelope[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    request_dto: RegisterUserRequest,
    request: Request,
    actor: User = Depends(require_roles(*MANAGEMENT)),
) -> Envelope[UserResponse]:
    use_case = RegisterUser(
        user_repository=SqlAlchemyUserRepository(),
        password_hasher=BcryptPasswordHasher(),
        audit_trail=_audit_trail(),
    )
    return Envelope(data=use_case.execute(actor, request_dto, request_origin(request)))


@router.get("/profile", response_model=Envelope[UserResponse])
def profile(user: User = Depends(get_current_user)) -> Envelope[UserResponse]:
    return Envelope(data=GetProfile().execute(user))


@router.put("/profile", response_model=Envelope[UserResponse])
def update_profile(
    request_dto: UpdateProfileRequest,
    user: User = Depends(get_current_user),
) -> Envelope[UserResponse]:
    use_case = UpdateProfile(user_repository=SqlAlchemyUserRepository())
    return Envelope(data=use_case.execute(user, request_dto))


@router.post("/change-password", response_model=Envelope[AuthTokenResponse])
def change_password(
    request_dto: ChangePasswordRequest,
    request: Request,
    user: User = Depends(get_current_user),
) -> Envelope[AuthTokenResponse]:
    return Envelope(
        data=_change_password_use_case().execute(user, request_dto, request_origin(request))
    )


@router.post("/logout-all", response_model=Envelope[MessageResponse])
def logout_all(
    request: Request,
    user: User = Depends(get_current_user),
) -> Envelope[MessageResponse]:
    use_case = LogoutAll(user_repository=SqlAlchemyUserRepository(), audit_trail=_audit_trail())
    return Envelope(data=use_case.execute(user, request_origin(request)))
