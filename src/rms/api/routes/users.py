from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from rms.api.dependencies import request_origin
from rms.api.security import MANAGEMENT, require_roles
from rms.application.dto.requests import ResetPasswordRequest, UpdateUserRequest
from rms.application.dto.responses import (
    AuditLogResponse,
    Envelope,
    UserResponse,
    UserStatsResponse,
)
from rms.application.use_cases.audit_trail import AuditTrail
from rms.application.use_cases.users import (
    DeleteUser,
    GetUser,
    ListAuditLogs,
    ListUsers,
    ResetPassword,
    SuspendUser,
    UpdateUser,
    UserActivity,
    UserStats,
)
from rms.domain.common.ids import UserId
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.user_repo import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyUserRepository,
)
from rms.infrastructure.security.passwords import BcryptPasswordHasher

router = APIRouter(prefix="/api/users", tags=["users"])
audit_router = APIRouter(prefix="/api/audit-logs", tags=["users"])

management = require_roles(*MANAGEMENT)


def _audit_trail() -> AuditTrail:
    return AuditTrail(audit_repository=SqlAlchemyAuditLogRepository())


@router.get("", response_model=Envelope[list[UserResponse]])
def list_users(
    role: str | None = None,
    status: str | None = None,
    _: User = Depends(management),
) -> Envelope[list[UserResponse]]:
    use_case = ListUsers(user_repository=SqlAlchemyUserRepository())
    return Envelope(data=use_case.execute(role=role, status=status))


@router.get("/stats", response_model=Envelope[UserStatsResponse])
def user_stats(_: User = Depends(management)) -> Envelope[UserStatsResponse]:
    return Envelope(data=UserStats(user_repository=SqlAlchemyUserRepository()).execute())


@router.get("/{user_id}", response_model=Envelope[UserResponse])
def get_user(user_id: str, _: User = Depends(management)) -> Envelope[UserResponse]:
    use_case = GetUser(user_repository=SqlAlchemyUserRepository())
    return Envelope(data=use_case.execute(UserId(user_id)))


@router.put("/{user_id}", response_model=Envelope[UserResponse])
def update_user(
    user_id: str,
    request_dto: UpdateUserRequest,
    request: Request,
    actor: User = Depends(management),
) -> Envelope[UserResponse]:
    use_case = UpdateUser(user_repository=SqlAlchemyUserRepository(), audit_trail=_audit_trail())
    return Envelope(
        data=use_case.execute(actor, UserId(user_id), request_dto, request_origin(request))
    )


@router.delete("/{user_id}", response_model=Envelope[UserResponse])
def delete_user(
    user_id: str,
    request: Request,
    actor: User = Depends(management),
) -> Envelope[UserResponse]:
    use_case = DeleteUser(user_repository=SqlAlchemyUserRepository(), audit_trail=_audit_trail())
    return Envelope(data=use_case.execute(actor, UserId(user_id), request_origin(request)))


@router.post("/{user_id}/suspend", response_model=Envelope[UserResponse])
def suspend_user(
    user_id: str,
    request: Request,
    actor: User = Depends(management),
) -> Envelope[UserResponse]:
    use_case = SuspendUser(user_repository=SqlAlchemyUserRepository(), audit_trail=_audit_trail())
    return Envelope(data=use_case.execute(actor, UserId(user_id), request_origin(request)))


@router.post("/{user_id}/reset-password", response_model=Envelope[UserResponse])
def reset_password(
    user_id: str,
    request_dto: ResetPasswordRequest,
    request: Request,
    actor: User = Depends(management),
) -> Envelope[UserResponse]:
    use_case = ResetPassword(
        user_repository=SqlAlchemyUserRepository(),
        password_hasher=BcryptPasswordHasher(),
        audit_trail=_audit_trail(),
    )
    return Envelope(
        data=use_case.execute(actor, UserId(user_id), request_dto, request_origin(request))
    )


@audit_router.get("", response_model=Envelope[list[AuditLogResponse]])
def audit_logs(
    user_id: str | None = None,
    action: str | None = None,
    limit: int = 100,
    offset: int = 0,
    _: User = Depends(management),
) -> Envelope[list[AuditLogResponse]]:
    use_case = ListAuditLogs(audit_repository=SqlAlchemyAuditLogRepository())
    return Envelope(
        data=use_case.execute(
            user_id=UserId(user_id) if user_id else None,
            action=action,
            limit=limit,
            offset=offset,
        )
    )


@audit_router.get("/users/{user_id}", response_model=Envelope[list[AuditLogResponse]])
def user_activity(
    user_id: str,
    limit: int = 50,
    _: User = Depends(management),
) -> Envelope[list[AuditLogResponse]]:
    use_case = UserActivity(
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditLogRepository(),
    )
    return Envelope(data=use_case.execute(UserId(user_id), limit=limit))
