from __future__ import annotations

from rms.application.dto.responses import AuditLogResponse, UserResponse
from rms.domain.identity.entities import AuditEntry, User


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        userId=str(user.user_id),
        username=user.username,
        email=user.email,
        role=user.role.value,
        firstName=user.first_name,
        lastName=user.last_name,
        phone=user.phone,
        status=user.status.value,
        lastLogin=user.last_login,
        createdAt=user.created_at,
    )


def to_audit_log_response(entry: AuditEntry) -> AuditLogResponse:
    return AuditLogResponse(
        auditId=str(entry.audit_id),
        userId=str(entry.user_id) if entry.user_id else None,
        action=entry.action.value,
        success=entry.success,
        ipAddress=entry.ip_address,
        userAgent=entry.user_agent,
        details=entry.details or {},
        createdAt=entry.created_at,
    )
