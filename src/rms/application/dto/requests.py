from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class LoginRequest(CamelBaseModel):
    email: str
    password: str


class RegisterUserRequest(CamelBaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str
    role: str
    first_name: str = Field(min_length=1)
    last_name: str = ""
    phone: str | None = None


class UpdateProfileRequest(CamelBaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    email: str | None = None


class UpdateUserRequest(UpdateProfileRequest):
    role: str | None = None
    status: str | None = None


class ChangePasswordRequest(CamelBaseModel):
    current_password: str
    new_password: str


class ResetPasswordRequest(CamelBaseModel):
    new_password: str


class CategoryRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class CreateMenuItemRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0)
    category_id: str | None = None
    description: str | None = None
    available: bool = True
    popular: bool = False
    preparation_time: int = Field(default=15, ge=0)


class UpdateMenuItemRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: Decimal | None = Field(default=None, ge=0)
    category_id: str | None = None
    description: str | None = None
    available: bool | None = None
    popular: bool | None = None
    preparation_time: int | None = Field(default=None, ge=0)


class CreateTableRequest(CamelBaseModel):
    table_number: str = Field(min_length=1, max_length=20)
    capacity: int = Field(default=2, ge=1)
    section: str = "Main Hall"
    notes: str | None = None


class UpdateTableRequest(CamelBaseModel):
    table_number: str | None = Field(default=None, min_length=1, max_length=20)
    capacity: int | None = Field(default=None, ge=1)
    section: str | None = None
    notes: str | None = None


class CustomerCountRequest(CamelBaseModel):
    customer_count: int


class TableStatusRequest(CamelBaseModel):
    status: str
    customer_count: int | None = Field(default=None, ge=0)


class CreatePagerRequest(CamelBaseModel):
    pager_number: int = Field(ge=1)


class AssignPagerRequest(CamelBaseModel):
    order_id: str


class OrderItemRequest(CamelBaseModel):
    menu_item_id: str
    quantity: int = Field(default=1, ge=1)
    special_instructions: str | None = None


class PlaceOrderRequest(CamelBaseModel):
    items: list[OrderItemRequest] = Field(min_length=1)
    table_id: str | None = None
    customer_name: str | None = None
    customer_count: int = Field(default=1, ge=1)
    pager_number: int | None = Field(default=None, ge=1)
    notes: str | None = None


class UpdateOrderStatusRequest(CamelBaseModel):
    status: str


class UpdatePaymentRequest(CamelBaseModel):
    payment_status: str
    payment_method: str | None = None


class ItemStatusRequest(CamelBaseModel):
    status: str


class ProcessPaymentRequest(CamelBaseModel):
    payment_method: str
    tip: Decimal = Field(default=Decimal(0), ge=0)
    discount: Decimal | None = Field(default=None, ge=0)
    tax: Decimal = Field(default=Decimal(0), ge=0)
    split_count: int = Field(default=1, ge=1)


class DiscountRequest(CamelBaseModel):
    discount_amount: Decimal = Field(ge=0)
    discount_reason: str | None = None


class CreateIngredientRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=255)
    unit: str = Field(min_length=1, max_length=20)
    current_stock: Decimal = Field(default=Decimal(0), ge=0)
    minimum_stock: Decimal = Field(default=Decimal(10), ge=0)
    cost_per_unit: Decimal = Field(default=Decimal(0), ge=0)
    supplier_id: str | None = None
    category: str | None = None
    notes: str | None = None


class UpdateIngredientRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    unit: str | None = Field(default=None, min_length=1, max_length=20)
    current_stock: Decimal | None = Field(default=None, ge=0)
    minimum_stock: Decimal | None = Field(default=None, ge=0)
    cost_per_unit: Decimal | None = Field(default=None, ge=0)
    supplier_id: str | None = None
    category: str | None = None
    notes: str | None = None


class StockAdjustmentRequest(CamelBaseModel):
    quantity: Decimal
    notes: str | None = None


class WastageRequest(CamelBaseModel):
    quantity: Decimal = Field(gt=0)
    notes: str | None = None


class UsageRequest(CamelBaseModel):
    quantity: Decimal = Field(gt=0)
    order_id: str | None = None
    notes: str | None = None


class StockCheckItemRequest(CamelBaseModel):
    ingredient_id: str
    quantity: Decimal = Field(gt=0)


class StockCheckRequest(CamelBaseModel):
    items: list[StockCheckItemRequest] = Field(min_length=1)


class SupplierRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    payment_terms: str | None = None


class UpdateSupplierRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    payment_terms: str | None = None
    status: str | None = None


class PurchaseOrderItemRequest(CamelBaseModel):
    ingredient_id: str
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class CreatePurchaseOrderRequest(CamelBaseModel):
    supplier_id: str
    items: list[PurchaseOrderItemRequest] = Field(min_length=1)
    expected_delivery: date | None = None
    notes: str | None = None


class PurchaseOrderStatusRequest(CamelBaseModel):
    status: str


class ReceiptLineRequest(CamelBaseModel):
    item_id: str
    received_quantity: Decimal = Field(gt=0)


class ReceivePartialRequest(CamelBaseModel):
    items: list[ReceiptLineRequest] = Field(min_length=1)


class RecipeIngredientRequest(CamelBaseModel):
    ingredient_id: str
    quantity_required: Decimal = Field(gt=0)
    is_optional: bool = False


class UpdateRecipeIngredientRequest(CamelBaseModel):
    quantity_required: Decimal = Field(gt=0)
    is_optional: bool | None = None


class CreateStationRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    status: str = "active"
    color: str | None = None


class UpdateStationRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    status: str | None = None
    color: str | None = None


class AssignCategoriesRequest(CamelBaseModel):
    category_ids: list[str]


class AssignChefRequest(CamelBaseModel):
    chef_id: str = Field(min_length=1)
