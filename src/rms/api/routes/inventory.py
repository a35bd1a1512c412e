from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.dependencies import actor_of
from rms.api.security import MANAGEMENT, STAFF, require_roles
from rms.application.dto.requests import (
    CreateIngredientRequest,
    StockAdjustmentRequest,
    StockCheckRequest,
    UpdateIngredientRequest,
    UsageRequest,
    WastageRequest,
)
from rms.application.dto.responses import (
    Envelope,
    IngredientResponse,
    MessageResponse,
    StockCheckResponse,
    StockMovementResponse,
    StockSummaryResponse,
    StockTransactionResponse,
)
from rms.application.use_cases.inventory import (
    AdjustStock,
    CreateIngredient,
    DeleteIngredient,
    GetIngredient,
    ListIngredients,
    ListStockTransactions,
    LowStock,
    RecordUsage,
    RecordWastage,
    StockCheck,
    StockSummary,
    UpdateIngredient,
)
from rms.domain.common.ids import IngredientId
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.inventory_repo import SqlAlchemyInventoryRepository

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

staff = require_roles(*STAFF)
management = require_roles(*MANAGEMENT)
stock_watchers = require_roles(Role.ADMIN, Role.MANAGER, Role.CHEF)


@router.get("", response_model=Envelope[list[IngredientResponse]])
def list_ingredients(
    category: str | None = None,
    search: str | None = None,
    low_stock: bool = False,
    _: User = Depends(staff),
) -> Envelope[list[IngredientResponse]]:
    use_case = ListIngredients(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(data=use_case.execute(category=category, search=search, low_stock=low_stock))


@router.get("/low-stock", response_model=Envelope[list[IngredientResponse]])
def low_stock(_: User = Depends(stock_watchers)) -> Envelope[list[IngredientResponse]]:
    return Envelope(data=LowStock(inventory_repository=SqlAlchemyInventoryRepository()).execute())


@router.get("/summary", response_model=Envelope[StockSummaryResponse])
def stock_summary(_: User = Depends(stock_watchers)) -> Envelope[StockSummaryResponse]:
    use_case = StockSummary(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(data=use_case.execute())


@router.get("/transactions", response_model=Envelope[list[StockTransactionResponse]])
def stock_transactions(
    ingredient_id: str | None = None,
    transaction_type: str | None = None,
    limit: int = 100,
    _: User = Depends(staff),
) -> Envelope[list[StockTransactionResponse]]:
    use_case = ListStockTransactions(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(
        data=use_case.execute(
            ingredient_id=IngredientId(ingredient_id) if ingredient_id else None,
            transaction_type=transaction_type,
            limit=limit,
        )
    )


@router.post("/check", response_model=Envelope[StockCheckResponse])
def stock_check(
    request_dto: StockCheckRequest,
    _: User = Depends(staff),
) -> Envelope[StockCheckResponse]:
    use_case = StockCheck(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.get("/{ingredient_id}", response_model=Envelope[IngredientResponse])
def get_ingredient(ingredient_id: str, _: User = Depends(staff)) -> Envelope[IngredientResponse]:
    use_case = GetIngredient(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(data=use_case.execute(IngredientId(ingredient_id)))


@router.post(
    "",
    response_model=Envelope[IngredientResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_ingredient(
    request_dto: CreateIngredientRequest,
    user: User = Depends(management),
) -> Envelope[IngredientResponse]:
    use_case = CreateIngredient(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(data=use_case.execute(request_dto, actor_of(user)))


@router.put("/{ingredient_id}", response_model=Envelope[IngredientResponse])
def update_ingredient(
    ingredient_id: str,
    request_dto: UpdateIngredientRequest,
    user: User = Depends(management),
) -> Envelope[IngredientResponse]:
    use_case = UpdateIngredient(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(
        data=use_case.execute(IngredientId(ingredient_id), request_dto, actor_of(user))
    )


@router.delete("/{ingredient_id}", response_model=Envelope[MessageResponse])
def delete_ingredient(
    ingredient_id: str,
    _: User = Depends(require_roles(Role.ADMIN)),
) -> Envelope[MessageResponse]:
    use_case = DeleteIngredient(inventory_repository=SqlAlchemyInventoryRepository())
    use_case.execute(IngredientId(ingredient_id))
    return Envelope(data=MessageResponse(message=f"ingredient {ingredient_id} deleted"))


@router.post("/{ingredient_id}/adjust", response_model=Envelope[StockMovementResponse])
def adjust_stock(
    ingredient_id: str,
    request_dto: StockAdjustmentRequest,
    user: User = Depends(management),
) -> Envelope[StockMovementResponse]:
    use_case = AdjustStock(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(
        data=use_case.execute(IngredientId(ingredient_id), request_dto, actor_of(user))
    )


@router.post("/{ingredient_id}/wastage", response_model=Envelope[StockMovementResponse])
def record_wastage(
    ingredient_id: str,
    request_dto: WastageRequest,
    user: User = Depends(management),
) -> Envelope[StockMovementResponse]:
    use_case = RecordWastage(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(
        data=use_case.execute(IngredientId(ingredient_id), request_dto, actor_of(user))
    )


@router.post("/{ingredient_id}/usage", response_model=Envelope[StockMovementResponse])
def record_usage(
    ingredient_id: str,
    request_dto: UsageRequest,
    user: User = Depends(stock_watchers),
) -> Envelope[StockMovementResponse]:
    use_case = RecordUsage(inventory_repository=SqlAlchemyInventoryRepository())
    return Envelope(
        data=use_case.execute(IngredientId(ingredient_id), request_dto, actor_of(user))
    )
