from __future__ import annotations

from dataclasses import dataclass

from rms.domain.common.ids import UserId
from rms.domain.identity.entities import Role


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None


@dataclass(frozen=True)
class Actor:
    user_id: UserId
    role: Role


@dataclass(frozen=True)
class RequestOrigin:
    ip_address: str | None = None
    user_agent: str | None = None
