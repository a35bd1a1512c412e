from __future__ import annotations

from rms.application.dto.responses import (
    PurchaseOrderItemResponse,
    PurchaseOrderResponse,
    SupplierResponse,
)
from rms.domain.procurement.entities import PurchaseOrder, Supplier


def to_supplier_response(supplier: Supplier) -> SupplierResponse:
    return SupplierResponse(
        supplierId=str(supplier.supplier_id),
        name=supplier.name,
        status=supplier.status.value,
        contactPerson=supplier.contact_person,
        phone=supplier.phone,
        email=supplier.email,
        address=supplier.address,
        paymentTerms=supplier.payment_terms,
    )


def to_purchase_order_response(purchase_order: PurchaseOrder) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        purchaseOrderId=str(purchase_order.purchase_order_id),
        orderNumber=purchase_order.order_number,
        supplierId=str(purchase_order.supplier_id),
        status=purchase_order.status.value,
        items=[
            PurchaseOrderItemResponse(
                itemId=str(item.item_id),
                ingredientId=str(item.ingredient_id),
                quantity=item.quantity,
                unitPrice=item.unit_price.to_decimal(),
                receivedQuantity=item.received_quantity,
                lineTotal=item.line_total.to_decimal(),
            )
            for item in purchase_order.items
        ],
        totalAmount=purchase_order.total_amount.to_decimal(),
        expectedDelivery=purchase_order.expected_delivery,
        receivedDate=purchase_order.received_date,
        notes=purchase_order.notes,
        createdBy=str(purchase_order.created_by) if purchase_order.created_by else None,
        createdAt=purchase_order.created_at,
    )
