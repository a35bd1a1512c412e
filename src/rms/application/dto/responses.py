from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    success: bool = True
    data: DataT


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    userId: str
    username: str
    email: str
    role: str
    firstName: str
    lastName: str
    phone: str | None = None
    status: str
    lastLogin: datetime | None = None
    createdAt: datetime


class AuthTokenResponse(BaseModel):
    token: str
    user: UserResponse


class UserStatsResponse(BaseModel):
    total: int
    byRole: dict[str, int] = Field(default_factory=dict)
    byStatus: dict[str, int] = Field(default_factory=dict)


class AuditLogResponse(BaseModel):
    auditId: str
    userId: str | None = None
    action: str
    success: bool
    ipAddress: str | None = None
    userAgent: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime


class CategoryResponse(BaseModel):
    categoryId: str
    name: str
    description: str | None = None


class MenuItemResponse(BaseModel):
    itemId: str
    categoryId: str | None = None
    name: str
    description: str | None = None
    price: Decimal
    available: bool
    popular: bool
    preparationTime: int


class CategoryDetailResponse(CategoryResponse):
    items: list[MenuItemResponse] = Field(default_factory=list)


class TableResponse(BaseModel):
    tableId: str
    tableNumber: str
    capacity: int
    status: str
    customerCount: int
    section: str
    notes: str | None = None


class TableStatsResponse(BaseModel):
    total: int
    available: int
    occupied: int
    reserved: int
    totalCapacity: int
    seatedCustomers: int


class PagerResponse(BaseModel):
    pagerId: str
    pagerNumber: int
    status: str
    orderId: str | None = None
    assignedAt: datetime | None = None


class PagerStatsResponse(BaseModel):
    total: int
    available: int
    assigned: int
    active: int


class OrderItemResponse(BaseModel):
    itemId: str
    menuItemId: str
    name: str
    quantity: int
    price: Decimal
    subtotal: Decimal
    status: str
    specialInstructions: str | None = None
    completedAt: datetime | None = None


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: str
    tableId: str | None = None
    customerName: str
    status: str
    paymentStatus: str
    paymentMethod: str | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)
    totalAmount: Decimal
    tax: Decimal
    tip: Decimal
    discount: Decimal
    splitCount: int
    waiterId: str | None = None
    cashierId: str | None = None
    orderTime: datetime
    estimatedReadyTime: datetime | None = None
    actualReadyTime: datetime | None = None
    completedTime: datetime | None = None
    pagerNumber: int | None = None
    notes: str | None = None
    cancelReason: str | None = None


class KitchenStatsResponse(BaseModel):
    pending: int
    preparing: int
    ready: int
    completedToday: int
    cancelledToday: int
    urgent: int


class ReceiptResponse(BaseModel):
    receiptNumber: str
    orderNumber: str
    orderTime: datetime
    issuedAt: datetime
    customerName: str
    tableId: str | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    discount: Decimal
    total: Decimal
    paymentMethod: str | None = None
    paymentStatus: str
    cashierId: str | None = None


class IngredientResponse(BaseModel):
    ingredientId: str
    name: str
    unit: str
    currentStock: Decimal
    minimumStock: Decimal
    costPerUnit: Decimal
    supplierId: str | None = None
    category: str | None = None
    notes: str | None = None
    isLowStock: bool


class StockTransactionResponse(BaseModel):
    transactionId: str
    ingredientId: str
    transactionType: str
    quantity: Decimal
    previousStock: Decimal
    newStock: Decimal
    userId: str | None = None
    referenceType: str | None = None
    referenceId: str | None = None
    notes: str | None = None
    createdAt: datetime


class StockMovementResponse(BaseModel):
    ingredient: IngredientResponse
    transaction: StockTransactionResponse


class StockShortageResponse(BaseModel):
    ingredientId: str
    name: str | None = None
    required: Decimal
    available: Decimal


class StockCheckResponse(BaseModel):
    sufficient: bool
    shortages: list[StockShortageResponse] = Field(default_factory=list)


class SupplierResponse(BaseModel):
    supplierId: str
    name: str
    status: str
    contactPerson: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    paymentTerms: str | None = None


class PurchaseOrderItemResponse(BaseModel):
    itemId: str
    ingredientId: str
    quantity: Decimal
    unitPrice: Decimal
    receivedQuantity: Decimal
    lineTotal: Decimal


class PurchaseOrderResponse(BaseModel):
    purchaseOrderId: str
    orderNumber: str
    supplierId: str
    status: str
    items: list[PurchaseOrderItemResponse] = Field(default_factory=list)
    totalAmount: Decimal
    expectedDelivery: date | None = None
    receivedDate: date | None = None
    notes: str | None = None
    createdBy: str | None = None
    createdAt: datetime


class CategoryStockResponse(BaseModel):
    category: str | None = None
    totalItems: int
    totalValue: Decimal
    lowStockCount: int
    outOfStockCount: int


class StockSummaryResponse(BaseModel):
    totalIngredients: int
    totalValue: Decimal
    lowStockCount: int
    outOfStockCount: int
    categories: list[CategoryStockResponse] = Field(default_factory=list)
    mostValuable: list[IngredientResponse] = Field(default_factory=list)


class RecipeIngredientResponse(BaseModel):
    ingredientId: str
    ingredientName: str
    unit: str
    quantityRequired: Decimal
    isOptional: bool
    currentStock: Decimal
    costPerUnit: Decimal
    ingredientCost: Decimal


class RecipeResponse(BaseModel):
    menuItemId: str
    menuItemName: str
    sellingPrice: Decimal
    costPrice: Decimal
    profitMargin: Decimal
    ingredients: list[RecipeIngredientResponse] = Field(default_factory=list)


class ShortageResponse(BaseModel):
    ingredientId: str
    ingredientName: str
    unit: str
    required: Decimal
    available: Decimal
    missing: Decimal


class RecipeAvailabilityResponse(BaseModel):
    menuItemId: str
    quantity: int
    canPrepare: bool
    shortages: list[ShortageResponse] = Field(default_factory=list)


class StationResponse(BaseModel):
    stationId: str
    name: str
    description: str | None = None
    status: str
    color: str
    assignedChefId: str | None = None
    categoryIds: list[str] = Field(default_factory=list)


class StationWorkloadResponse(BaseModel):
    activeOrders: int
    pendingItems: int
    preparingItems: int


class StationDetailResponse(StationResponse):
    workload: StationWorkloadResponse


class StationStatsResponse(BaseModel):
    totalStations: int
    activeStations: int
    busyStations: int
    maintenanceStations: int
    staffedStations: int


class AvailableChefResponse(BaseModel):
    userId: str
    username: str
    firstName: str
    lastName: str
    currentStations: int
