from __future__ import annotations

from rms.application.dto.responses import OrderItemResponse, OrderResponse
from rms.domain.order.entities import Order, OrderItem


def to_order_item_response(item: OrderItem) -> OrderItemResponse:
    return OrderItemResponse(
        itemId=str(item.item_id),
        menuItemId=str(item.menu_item_id),
        name=item.name,
        quantity=item.quantity,
        price=item.price.to_decimal(),
        subtotal=item.subtotal.to_decimal(),
        status=item.status.value,
        specialInstructions=item.special_instructions,
        completedAt=item.completed_at,
    )


def to_order_response(order: Order, open_items_only: bool = False) -> OrderResponse:
    items = [item for item in order.items if item.is_open] if open_items_only else order.items
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        tableId=str(order.table_id) if order.table_id else None,
        customerName=order.customer_name,
        status=order.status.value,
        paymentStatus=order.payment_status.value,
        paymentMethod=order.payment_method.value if order.payment_method else None,
        items=[to_order_item_response(item) for item in items],
        totalAmount=order.total_amount.to_decimal(),
        tax=order.tax.to_decimal(),
        tip=order.tip.to_decimal(),
        discount=order.discount.to_decimal(),
        splitCount=order.split_count,
        waiterId=str(order.waiter_id) if order.waiter_id else None,
        cashierId=str(order.cashier_id) if order.cashier_id else None,
        orderTime=order.order_time,
        estimatedReadyTime=order.estimated_ready_time,
        actualReadyTime=order.actual_ready_time,
        completedTime=order.completed_time,
        pagerNumber=order.pager_number,
        notes=order.notes,
        cancelReason=order.cancel_reason,
    )
