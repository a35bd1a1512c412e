from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session, joinedload

from rms.application.ports.repositories import (
    PurchaseOrderRepository,
    StockChange,
    SupplierRepository,
)
from rms.domain.common.ids import (
    IngredientId,
    PurchaseOrderId,
    PurchaseOrderItemId,
    SupplierId,
    UserId,
)
from rms.domain.common.money import Money
from rms.domain.inventory.entities import TransactionType
from rms.domain.procurement.entities import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    Supplier,
    SupplierStatus,
)
from rms.infrastructure.db.models.procurement import (
    PurchaseOrderItemModel,
    PurchaseOrderModel,
    SupplierModel,
)
from rms.infrastructure.db.repositories.inventory_repo import increment_stock
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.db.timestamps import as_utc

PENDING_DELIVERY_STATUSES = (PurchaseOrderStatus.PENDING.value, PurchaseOrderStatus.ORDERED.value)


class SqlAlchemySupplierRepository(SupplierRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, supplier: Supplier) -> None:
        with Session(self._engine) as session:
            model = SupplierModel(id=str(supplier.supplier_id))
            self._copy(supplier, model)
            session.add(model)
            session.commit()

    def get(self, supplier_id: SupplierId) -> Supplier | None:
        with Session(self._engine) as session:
            model = session.get(SupplierModel, str(supplier_id))
            return self._to_domain(model) if model else None

    def update(self, supplier: Supplier) -> None:
        with Session(self._engine) as session:
            model = session.get(SupplierModel, str(supplier.supplier_id))
            if model is None:
                raise LookupError(f"supplier {supplier.supplier_id} not found")
            self._copy(supplier, model)
            session.commit()

    def list(self, status: SupplierStatus | None = None) -> list[Supplier]:
        statement = select(SupplierModel).order_by(SupplierModel.name)
        if status is not None:
            statement = statement.where(SupplierModel.status == status.value)
        with Session(self._engine) as session:
            return [self._to_domain(model) for model in session.execute(statement).scalars()]

    def _copy(self, supplier: Supplier, model: SupplierModel) -> None:
        model.name = supplier.name
        model.status = supplier.status.value
        model.contact_person = supplier.contact_person
        model.phone = supplier.phone
        model.email = supplier.email
        model.address = supplier.address
        model.payment_terms = supplier.payment_terms

    def _to_domain(self, model: SupplierModel) -> Supplier:
        return Supplier(
            supplier_id=SupplierId(model.id),
            name=model.name,
            status=SupplierStatus(model.status),
            contact_person=model.contact_person,
            phone=model.phone,
            email=model.email,
            address=model.address,
            payment_terms=model.payment_terms,
        )


class SqlAlchemyPurchaseOrderRepository(PurchaseOrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, purchase_order: PurchaseOrder) -> None:
        with Session(self._engine) as session, session.begin():
            model = PurchaseOrderModel(
                id=str(purchase_order.purchase_order_id),
                order_number=purchase_order.order_number,
                supplier_id=str(purchase_order.supplier_id),
                created_by=str(purchase_order.created_by) if purchase_order.created_by else None,
                created_at=purchase_order.created_at,
            )
            self._copy_header(purchase_order, model)
            model.items = [
                self._to_item_model(purchase_order.purchase_order_id, position, item)
                for position, item in enumerate(purchase_order.items)
            ]
            session.add(model)

    def get(self, purchase_order_id: PurchaseOrderId) -> PurchaseOrder | None:
        statement = (
            select(PurchaseOrderModel)
            .options(joinedload(PurchaseOrderModel.items))
            .where(PurchaseOrderModel.id == str(purchase_order_id))
        )
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()
            return self._to_domain(model) if model else None

    def list(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: SupplierId | None = None,
    ) -> list[PurchaseOrder]:
        statement = (
            select(PurchaseOrderModel)
            .options(joinedload(PurchaseOrderModel.items))
            .order_by(PurchaseOrderModel.created_at.desc())
        )
        if status is not None:
            statement = statement.where(PurchaseOrderModel.status == status.value)
        if supplier_id is not None:
            statement = statement.where(PurchaseOrderModel.supplier_id == str(supplier_id))
        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
            return [self._to_domain(model) for model in models]

    def list_pending_deliveries(self) -> list[PurchaseOrder]:
        statement = (
            select(PurchaseOrderModel)
            .options(joinedload(PurchaseOrderModel.items))
            .where(PurchaseOrderModel.status.in_(PENDING_DELIVERY_STATUSES))
            .order_by(
                PurchaseOrderModel.expected_delivery.is_(None),
                PurchaseOrderModel.expected_delivery,
                PurchaseOrderModel.created_at,
            )
        )
        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
            return [self._to_domain(model) for model in models]

    def save(self, purchase_order: PurchaseOrder) -> None:
        with Session(self._engine) as session, session.begin():
            self._write(session, purchase_order)

    def receive(
        self,
        purchase_order: PurchaseOrder,
        receipts: dict[PurchaseOrderItemId, Decimal],
        user_id: UserId | None,
        now: datetime,
    ) -> PurchaseOrder:
        """Persist received quantities and book the stock in one transaction."""
        by_item = {item.item_id: item for item in purchase_order.items}
        with Session(self._engine) as session, session.begin():
            self._write(session, purchase_order)
            for item_id, quantity in receipts.items():
                if quantity <= 0:
                    continue
                increment_stock(
                    session,
                    StockChange(
                        ingredient_id=by_item[item_id].ingredient_id,
                        delta=quantity,
                        transaction_type=TransactionType.PURCHASE,
                        user_id=user_id,
                        notes=f"Received from {purchase_order.order_number}",
                        reference_type="purchase_order",
                        reference_id=str(purchase_order.purchase_order_id),
                    ),
                    now,
                )
        persisted = self.get(purchase_order.purchase_order_id)
        if persisted is None:
            raise RuntimeError(f"purchase order {purchase_order.purchase_order_id} vanished")
        return persisted

    def _write(self, session: Session, purchase_order: PurchaseOrder) -> None:
        model = session.get(PurchaseOrderModel, str(purchase_order.purchase_order_id))
        if model is None:
            raise LookupError(f"purchase order {purchase_order.purchase_order_id} not found")
        self._copy_header(purchase_order, model)

        existing = {row.id: row for row in model.items}
        rows: list[PurchaseOrderItemModel] = []
        for position, item in enumerate(purchase_order.items):
            row = existing.get(str(item.item_id))
            if row is None:
                rows.append(self._to_item_model(purchase_order.purchase_order_id, position, item))
                continue
            row.position = position
            row.quantity = item.quantity
            row.unit_price_cents = item.unit_price.amount_cents
            row.received_quantity = item.received_quantity
            rows.append(row)
        # delete-orphan drops rows no longer listed
        model.items = rows

    def _copy_header(self, purchase_order: PurchaseOrder, model: PurchaseOrderModel) -> None:
        model.status = purchase_order.status.value
        model.total_cents = purchase_order.total_amount.amount_cents
        model.expected_delivery = purchase_order.expected_delivery
        model.received_date = purchase_order.received_date
        model.notes = purchase_order.notes

    def _to_item_model(
        self,
        purchase_order_id: PurchaseOrderId,
        position: int,
        item: PurchaseOrderItem,
    ) -> PurchaseOrderItemModel:
        return PurchaseOrderItemModel(
            id=str(item.item_id),
            purchase_order_id=str(purchase_order_id),
            position=position,
            ingredient_id=str(item.ingredient_id),
            quantity=item.quantity,
            unit_price_cents=item.unit_price.amount_cents,
            received_quantity=item.received_quantity,
        )

    def _to_domain(self, model: PurchaseOrderModel) -> PurchaseOrder:
        items = [
            PurchaseOrderItem(
                item_id=PurchaseOrderItemId(item.id),
                ingredient_id=IngredientId(item.ingredient_id),
                quantity=Decimal(item.quantity),
                unit_price=Money(amount_cents=item.unit_price_cents),
                received_quantity=Decimal(item.received_quantity),
            )
            for item in model.items
        ]
        return PurchaseOrder(
            purchase_order_id=PurchaseOrderId(model.id),
            order_number=model.order_number,
            supplier_id=SupplierId(model.supplier_id),
            status=PurchaseOrderStatus(model.status),
            items=items,
            total_amount=Money(amount_cents=model.total_cents),
            created_at=as_utc(model.created_at),
            created_by=UserId(model.created_by) if model.created_by else None,
            expected_delivery=model.expected_delivery,
            received_date=model.received_date,
            notes=model.notes,
        )
