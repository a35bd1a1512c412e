from __future__ import annotations

from fastapi import APIRouter, Depends

from rms.api.dependencies import actor_of, event_publisher, trace_context
from rms.api.security import BILLING, require_roles
from rms.application.dto.requests import DiscountRequest, ProcessPaymentRequest
from rms.application.dto.responses import Envelope, OrderResponse, ReceiptResponse
from rms.application.use_cases.payments import (
    ApplyDiscount,
    GenerateReceipt,
    PendingPayments,
    ProcessPayment,
)
from rms.domain.common.ids import OrderId
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter(prefix="/api/billing", tags=["billing"])

billing_staff = require_roles(*BILLING)


@router.get("/pending", response_model=Envelope[list[OrderResponse]])
def pending_payments(_: User = Depends(billing_staff)) -> Envelope[list[OrderResponse]]:
    return Envelope(data=PendingPayments(order_repository=SqlAlchemyOrderRepository()).execute())


@router.post("/orders/{order_id}/pay", response_model=Envelope[OrderResponse])
def process_payment(
    order_id: str,
    request_dto: ProcessPaymentRequest,
    user: User = Depends(billing_staff),
) -> Envelope[OrderResponse]:
    use_case = ProcessPayment(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=event_publisher(),
    )
    order = use_case.execute(
        OrderId(order_id),
        request_dto,
        cashier=actor_of(user),
        trace_ctx=trace_context(),
    )
    return Envelope(data=order)


@router.get("/orders/{order_id}/receipt", response_model=Envelope[ReceiptResponse])
def receipt(order_id: str, _: User = Depends(billing_staff)) -> Envelope[ReceiptResponse]:
    use_case = GenerateReceipt(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderId(order_id)))


@router.post("/orders/{order_id}/discount", response_model=Envelope[OrderResponse])
def apply_discount(
    order_id: str,
    request_dto: DiscountRequest,
    _: User = Depends(billing_staff),
) -> Envelope[OrderResponse]:
    use_case = ApplyDiscount(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderId(order_id), request_dto))
