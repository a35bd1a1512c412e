from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from uuid import uuid4

from rms.application.dto.requests import (
    DiscountRequest,
    ProcessPaymentRequest,
    UpdatePaymentRequest,
)
from rms.application.dto.responses import OrderResponse, ReceiptResponse
from rms.application.mappers.event_envelope import (
    ORDER_EVENTS_CHANNEL,
    serialize_order_paid_event,
)
from rms.application.mappers.order_mapper import to_order_item_response, to_order_response
from rms.application.metrics.order_lifecycle import record_payment
from rms.application.ports.publisher import EventPublisher
from rms.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderFilter,
    OrderRepository,
)
from rms.application.use_cases.context import Actor, TraceContext
from rms.application.use_cases.events import publish_quietly
from rms.application.use_cases.order_lifecycle import OrderConflictError, commit_plan, load_order
from rms.domain.common.ids import OrderId
from rms.domain.common.money import Money
from rms.domain.order.entities import Order, OrderStatus, PaymentMethod, PaymentStatus
from rms.domain.order.lifecycle import (
    InvalidPaymentError,
    OrderAlreadyPaidError,
    OrderTransitionError,
    Payment,
    plan_payment,
)

logger = logging.getLogger(__name__)

_OVERRIDE_METHODS = frozenset({PaymentMethod.CASH, PaymentMethod.CARD, PaymentMethod.MOBILE})


class InvalidPaymentRequestError(Exception):
    pass


class PaymentRejectedError(Exception):
    pass


def _parse_method(value: str, allowed: frozenset[PaymentMethod]) -> PaymentMethod:
    try:
        method = PaymentMethod(value.lower())
    except ValueError as exc:
        raise InvalidPaymentRequestError(f"invalid payment method: {value}") from exc
    if method not in allowed:
        raise InvalidPaymentRequestError(f"payment method {method.value} is not accepted here")
    return method


def _save_billing(order_repository: OrderRepository, order: Order, expected_version: int) -> Order:
    try:
        return order_repository.save_billing(order, expected_version=expected_version)
    except OptimisticConcurrencyError as exc:
        raise OrderConflictError(f"order {order.order_number} was modified concurrently") from exc


class ProcessPayment:
    """Settles an order; completion, table and pager release commit together."""

    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        request_dto: ProcessPaymentRequest,
        cashier: Actor,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        method = _parse_method(request_dto.payment_method, frozenset(PaymentMethod))
        order = load_order(self._order_repository, order_id)
        discount = order.discount
        if request_dto.discount is not None:
            discount = Money.from_decimal(request_dto.discount)
        payment = Payment(
            method=method,
            cashier_id=cashier.user_id,
            tip=Money.from_decimal(request_dto.tip),
            discount=discount,
            tax=Money.from_decimal(request_dto.tax),
            split_count=request_dto.split_count,
        )
        now = datetime.now(timezone.utc)
        try:
            plan = plan_payment(order, payment, now)
        except InvalidPaymentError as exc:
            raise InvalidPaymentRequestError(str(exc)) from exc
        except (OrderTransitionError, OrderAlreadyPaidError) as exc:
            raise PaymentRejectedError(str(exc)) from exc

        paid = commit_plan(self._order_repository, self._publisher, plan, trace_ctx, now)

        record_payment(method.value)
        logger.info(
            "payment_processed",
            extra={
                "order_id": paid.order_id,
                "user_id": cashier.user_id,
                "amount_cents": paid.amount_due().amount_cents,
            },
        )
        publish_quietly(
            self._publisher,
            channel=ORDER_EVENTS_CHANNEL,
            message=serialize_order_paid_event(
                occurred_at=now,
                order=paid,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
        return to_order_response(paid)


class UpdatePaymentStatus:
    """Cashier override of the payment fields; order status is untouched."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, request_dto: UpdatePaymentRequest) -> OrderResponse:
        try:
            payment_status = PaymentStatus(request_dto.payment_status.lower())
        except ValueError as exc:
            raise InvalidPaymentRequestError(
                f"invalid payment status: {request_dto.payment_status}"
            ) from exc
        method = None
        if request_dto.payment_method:
            method = _parse_method(request_dto.payment_method, _OVERRIDE_METHODS)

        order = load_order(self._order_repository, order_id)
        if order.status == OrderStatus.CANCELLED and payment_status == PaymentStatus.PAID:
            raise PaymentRejectedError(f"order {order.order_number} is cancelled")

        updated = replace(
            order,
            payment_status=payment_status,
            payment_method=method or order.payment_method,
        )
        return to_order_response(_save_billing(self._order_repository, updated, order.version))


class ApplyDiscount:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, request_dto: DiscountRequest) -> OrderResponse:
        order = load_order(self._order_repository, order_id)
        if order.is_paid or order.status == OrderStatus.CANCELLED:
            raise PaymentRejectedError(
                f"cannot discount order {order.order_number} "
                f"(status={order.status.value}, payment={order.payment_status.value})"
            )
        discount = Money.from_decimal(request_dto.discount_amount)
        if discount.amount_cents > order.total_amount.amount_cents:
            raise InvalidPaymentRequestError("discount cannot exceed the order total")

        line = f"Discount: {discount.to_decimal()}"
        if request_dto.discount_reason:
            line += f" ({request_dto.discount_reason})"
        notes = f"{order.notes}\n{line}" if order.notes else line

        updated = replace(order, discount=discount, notes=notes)
        return to_order_response(_save_billing(self._order_repository, updated, order.version))


class GenerateReceipt:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> ReceiptResponse:
        order = load_order(self._order_repository, order_id)
        try:
            total = order.amount_due()
        except ValueError as exc:
            raise InvalidPaymentRequestError(str(exc)) from exc
        return ReceiptResponse(
            receiptNumber=f"RCPT-{uuid4().hex[:8].upper()}",
            orderNumber=order.order_number,
            orderTime=order.order_time,
            issuedAt=datetime.now(timezone.utc),
            customerName=order.customer_name,
            tableId=str(order.table_id) if order.table_id else None,
            items=[to_order_item_response(item) for item in order.items],
            subtotal=order.total_amount.to_decimal(),
            tax=order.tax.to_decimal(),
            tip=order.tip.to_decimal(),
            discount=order.discount.to_decimal(),
            total=total.to_decimal(),
            paymentMethod=order.payment_method.value if order.payment_method else None,
            paymentStatus=order.payment_status.value,
            cashierId=str(order.cashier_id) if order.cashier_id else None,
        )


class PendingPayments:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self) -> list[OrderResponse]:
        orders = self._order_repository.list(
            OrderFilter(
                payment_status=PaymentStatus.PENDING,
                exclude_statuses=frozenset({OrderStatus.CANCELLED}),
            ),
            limit=200,
        )
        return [to_order_response(order) for order in orders]
