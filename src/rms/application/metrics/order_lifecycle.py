from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from rms.domain.order.entities import Order, OrderStatus

ORDERS_CREATED_TOTAL = Counter(
    "rms_orders_created_total",
    "Total number of orders placed.",
    ["source"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "rms_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_READY_SECONDS = Histogram(
    "rms_order_time_to_ready_seconds",
    "Time between order placement and readiness.",
)

PAYMENTS_TOTAL = Counter(
    "rms_payments_total",
    "Total number of settled payments by method.",
    ["method"],
)

PAGER_CONFLICTS_TOTAL = Counter(
    "rms_pager_conflicts_total",
    "Total number of rejected pager assignments.",
)

TABLE_REJECTIONS_TOTAL = Counter(
    "rms_table_rejections_total",
    "Total number of rejected table seatings.",
    ["reason"],
)

LOGINS_TOTAL = Counter(
    "rms_logins_total",
    "Total number of login attempts by outcome.",
    ["outcome"],
)


def record_order_created(order: Order) -> None:
    source = "table" if order.table_id else "counter"
    ORDERS_CREATED_TOTAL.labels(source=source).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_ready(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_READY_SECONDS.observe(max((current - order.order_time).total_seconds(), 0.0))


def record_payment(method: str) -> None:
    PAYMENTS_TOTAL.labels(method=method).inc()


def record_pager_conflict() -> None:
    PAGER_CONFLICTS_TOTAL.inc()


def record_table_rejection(reason: str) -> None:
    TABLE_REJECTIONS_TOTAL.labels(reason=reason).inc()


def record_login(outcome: str) -> None:
    LOGINS_TOTAL.labels(outcome=outcome).inc()
