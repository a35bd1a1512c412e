from __future__ import annotations

from fastapi import Request

from rms.api.middleware.request_id import get_request_id
from rms.application.ports.publisher import EventPublisher
from rms.application.use_cases.context import Actor, RequestOrigin, TraceContext
from rms.domain.identity.entities import User
from rms.infrastructure.messaging.redis_publisher import RedisEventPublisher
from rms.infrastructure.observability.otel import current_trace_id


def trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def request_origin(request: Request) -> RequestOrigin:
    return RequestOrigin(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def actor_of(user: User) -> Actor:
    return Actor(user_id=user.user_id, role=user.role)


def event_publisher() -> EventPublisher:
    return RedisEventPublisher()
