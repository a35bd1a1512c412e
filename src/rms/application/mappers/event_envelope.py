from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from rms.domain.order.entities import Order

ORDER_EVENTS_CHANNEL = "events:orders"


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def _order_payload(order: Order) -> dict[str, Any]:
    return {
        "orderId": str(order.order_id),
        "orderNumber": order.order_number,
        "tableId": str(order.table_id) if order.table_id else None,
        "status": order.status.value,
        "paymentStatus": order.payment_status.value,
        "totalCents": order.total_amount.amount_cents,
        "pagerNumber": order.pager_number,
        "items": [
            {
                "itemId": str(item.item_id),
                "menuItemId": str(item.menu_item_id),
                "name": item.name,
                "quantity": item.quantity,
                "status": item.status.value,
            }
            for item in order.items
        ],
    }


def serialize_order_created_event(
    *,
    occurred_at: datetime,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="order.created",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=_order_payload(order),
    )


def serialize_order_status_event(
    *,
    occurred_at: datetime,
    order: Order,
    previous_status: str,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    payload = _order_payload(order)
    payload["previousStatus"] = previous_status
    return _serialize_event(
        event_type="order.status_changed",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=payload,
    )


def serialize_order_paid_event(
    *,
    occurred_at: datetime,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    payload = _order_payload(order)
    payload["paymentMethod"] = order.payment_method.value if order.payment_method else None
    payload["amountDueCents"] = order.amount_due().amount_cents
    return _serialize_event(
        event_type="order.paid",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=payload,
    )
