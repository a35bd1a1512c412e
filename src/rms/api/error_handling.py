from __future__ import annotations

import logging
import os
import traceback
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rms.api.middleware.request_id import get_request_id
from rms.application.use_cases.auth import (
    AccountDisabledError,
    InvalidCredentialsError,
    MissingCredentialsError,
    SessionRevokedError,
    TokenRejectedError,
)
from rms.application.use_cases.inventory import (
    DuplicateIngredientError,
    IngredientInUseError,
    IngredientNotFoundError,
    InvalidInventoryRequestError,
    StockLevelError,
)
from rms.application.use_cases.menu import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    InvalidMenuQueryError,
    MenuItemNotFoundError,
)
from rms.application.use_cases.order_items import LastOrderItemError, OrderLockedError
from rms.application.use_cases.order_lifecycle import (
    InvalidOrderStatusError,
    InvalidOrderTransitionError,
    OrderConflictError,
    OrderItemNotFoundError,
    OrderNotFoundError,
    TransitionForbiddenError,
)
from rms.application.use_cases.order_queries import InvalidOrderQueryError
from rms.application.use_cases.pagers import (
    DuplicatePagerError,
    InvalidPagerStatusError,
    PagerConflictError,
    PagerNotFoundError,
    PagerOrderNotFoundError,
)
from rms.application.use_cases.payments import InvalidPaymentRequestError, PaymentRejectedError
from rms.application.use_cases.place_order import MenuItemUnavailableError
from rms.application.use_cases.procurement import (
    InvalidProcurementRequestError,
    PurchaseOrderConflictError,
    PurchaseOrderNotFoundError,
    SupplierInactiveError,
    SupplierNotFoundError,
)
from rms.application.use_cases.recipes import InvalidRecipeRequestError, RecipeLineNotFoundError
from rms.application.use_cases.stations import (
    ChefUnavailableError,
    DuplicateStationError,
    InvalidStationRequestError,
    StationInUseError,
    StationNotFoundError,
)
from rms.application.use_cases.tables import (
    DuplicateTableError,
    InvalidPartySizeError,
    InvalidTableStatusError,
    TableNotFoundError,
    TableStateError,
)
from rms.application.use_cases.users import (
    DuplicateUserError,
    InvalidUserInputError,
    UserNotFoundError,
    UserPermissionError,
)

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

ERROR_MAPPINGS: list[tuple[type[Exception], int, str]] = [
    # authentication / authorization
    (MissingCredentialsError, 400, "MISSING_CREDENTIALS"),
    (InvalidCredentialsError, 401, "INVALID_CREDENTIALS"),
    (SessionRevokedError, 401, "SESSION_REVOKED"),
    (AccountDisabledError, 403, "ACCOUNT_DISABLED"),
    (TokenRejectedError, 403, "INVALID_TOKEN"),
    (UserPermissionError, 403, "PERMISSION_DENIED"),
    (TransitionForbiddenError, 403, "TRANSITION_FORBIDDEN"),
    # users
    (UserNotFoundError, 404, "USER_NOT_FOUND"),
    (DuplicateUserError, 409, "DUPLICATE_USER"),
    (InvalidUserInputError, 400, "INVALID_USER_INPUT"),
    # menu
    (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
    (CategoryNotFoundError, 404, "CATEGORY_NOT_FOUND"),
    (DuplicateCategoryError, 409, "DUPLICATE_CATEGORY"),
    (CategoryInUseError, 409, "CATEGORY_IN_USE"),
    (InvalidMenuQueryError, 400, "INVALID_MENU_QUERY"),
    (MenuItemUnavailableError, 400, "MENU_ITEM_UNAVAILABLE"),
    (RecipeLineNotFoundError, 404, "RECIPE_LINE_NOT_FOUND"),
    (InvalidRecipeRequestError, 400, "INVALID_RECIPE_REQUEST"),
    # kitchen stations
    (StationNotFoundError, 404, "STATION_NOT_FOUND"),
    (DuplicateStationError, 409, "DUPLICATE_STATION"),
    (StationInUseError, 409, "STATION_IN_USE"),
    (ChefUnavailableError, 409, "CHEF_UNAVAILABLE"),
    (InvalidStationRequestError, 400, "INVALID_STATION_REQUEST"),
    # tables and pagers
    (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
    (DuplicateTableError, 409, "DUPLICATE_TABLE"),
    (TableStateError, 409, "TABLE_UNAVAILABLE"),
    (InvalidPartySizeError, 400, "INVALID_PARTY_SIZE"),
    (InvalidTableStatusError, 400, "INVALID_TABLE_STATUS"),
    (PagerNotFoundError, 404, "PAGER_NOT_FOUND"),
    (PagerOrderNotFoundError, 404, "ORDER_NOT_FOUND"),
    (DuplicatePagerError, 409, "DUPLICATE_PAGER"),
    (PagerConflictError, 409, "PAGER_UNAVAILABLE"),
    (InvalidPagerStatusError, 400, "INVALID_PAGER_STATUS"),
    # orders, kitchen, billing
    (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
    (OrderItemNotFoundError, 404, "ORDER_ITEM_NOT_FOUND"),
    (InvalidOrderStatusError, 400, "INVALID_ORDER_STATUS"),
    (InvalidOrderQueryError, 400, "INVALID_ORDER_QUERY"),
    (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
    (OrderConflictError, 409, "CONFLICT"),
    (OrderLockedError, 409, "ORDER_LOCKED"),
    (LastOrderItemError, 400, "LAST_ORDER_ITEM"),
    (InvalidPaymentRequestError, 400, "INVALID_PAYMENT"),
    (PaymentRejectedError, 409, "PAYMENT_REJECTED"),
    # inventory and procurement
    (IngredientNotFoundError, 404, "INGREDIENT_NOT_FOUND"),
    (DuplicateIngredientError, 409, "DUPLICATE_INGREDIENT"),
    (IngredientInUseError, 409, "INGREDIENT_IN_USE"),
    (StockLevelError, 400, "INSUFFICIENT_STOCK"),
    (InvalidInventoryRequestError, 400, "INVALID_INVENTORY_REQUEST"),
    (SupplierNotFoundError, 404, "SUPPLIER_NOT_FOUND"),
    (SupplierInactiveError, 400, "SUPPLIER_INACTIVE"),
    (PurchaseOrderNotFoundError, 404, "PURCHASE_ORDER_NOT_FOUND"),
    (PurchaseOrderConflictError, 409, "PURCHASE_ORDER_CONFLICT"),
    (InvalidProcurementRequestError, 400, "INVALID_PROCUREMENT_REQUEST"),
]


def _exposes_internals() -> bool:
    return os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}


def error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": code,
            "details": details or {},
            "requestId": get_request_id(),
        },
        headers=headers,
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        return error_response(status_code=status_code, code=code, message=str(exc))

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return error_response(
        status_code=http_exc.status_code,
        code=_HTTP_CODES.get(http_exc.status_code, "HTTP_ERROR"),
        message=str(http_exc.detail) if http_exc.detail else "request failed",
        headers=getattr(http_exc, "headers", None),
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"method": request.method, "path": request.url.path})
    if not _exposes_internals():
        return error_response(
            status_code=500, code="INTERNAL_ERROR", message="internal server error"
        )
    return error_response(
        status_code=500,
        code="INTERNAL_ERROR",
        message=str(exc) or exc.__class__.__name__,
        details={"stack": traceback.format_exception(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls, status_code, code in ERROR_MAPPINGS:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
