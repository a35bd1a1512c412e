from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from rms.application.ports.repositories import AuditLogRepository
from rms.application.use_cases.context import RequestOrigin
from rms.domain.common.ids import AuditLogId, UserId, new_id
from rms.domain.identity.entities import AuditAction, AuditEntry

logger = logging.getLogger(__name__)


class AuditTrail:
    """Write-only sink for security relevant actions."""

    def __init__(self, audit_repository: AuditLogRepository) -> None:
        self._audit_repository = audit_repository

    def record(
        self,
        action: AuditAction,
        user_id: UserId | None,
        success: bool,
        origin: RequestOrigin | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        entry = AuditEntry(
            audit_id=AuditLogId(new_id("aud")),
            user_id=user_id,
            action=action,
            success=success,
            created_at=datetime.now(timezone.utc),
            ip_address=origin.ip_address if origin else None,
            user_agent=origin.user_agent if origin else None,
            details=details,
        )
        try:
            self._audit_repository.add(entry)
        except Exception:
            logger.exception(
                "audit_write_failed",
                extra={"action": action.value, "user_id": user_id},
            )
