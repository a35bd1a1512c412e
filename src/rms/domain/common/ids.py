from __future__ import annotations

from typing import NewType
from uuid import uuid4

UserId = NewType("UserId", str)
AuditLogId = NewType("AuditLogId", str)
CategoryId = NewType("CategoryId", str)
MenuItemId = NewType("MenuItemId", str)
TableId = NewType("TableId", str)
PagerId = NewType("PagerId", str)
OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
IngredientId = NewType("IngredientId", str)
StockTransactionId = NewType("StockTransactionId", str)
SupplierId = NewType("SupplierId", str)
PurchaseOrderId = NewType("PurchaseOrderId", str)
PurchaseOrderItemId = NewType("PurchaseOrderItemId", str)
StationId = NewType("StationId", str)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"
