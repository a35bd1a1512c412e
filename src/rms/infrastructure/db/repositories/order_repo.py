from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from sqlalchemy import Engine, delete, func, or_, select, update
from sqlalchemy.orm import Session, joinedload

from rms.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderFilter,
    OrderRepository,
    PagerUnavailableError,
    TableUnavailableError,
)
from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableId, UserId
from rms.domain.common.money import Money
from rms.domain.order.entities import (
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from rms.domain.order.lifecycle import ItemCascade, TransitionPlan
from rms.domain.table.entities import Table, TableStatus
from rms.infrastructure.db.models.order import OrderItemModel, OrderModel
from rms.infrastructure.db.models.table import TableModel
from rms.infrastructure.db.repositories.pager_repo import (
    activate_pager,
    claim_pager,
    release_pager,
)
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.db.timestamps import as_utc


def _write_order(session: Session, order: Order, expected_version: int) -> None:
    result = session.execute(
        update(OrderModel)
        .where(
            OrderModel.id == str(order.order_id),
            OrderModel.version == expected_version,
        )
        .values(
            customer_name=order.customer_name,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value if order.payment_method else None,
            total_cents=order.total_amount.amount_cents,
            tax_cents=order.tax.amount_cents,
            tip_cents=order.tip.amount_cents,
            discount_cents=order.discount.amount_cents,
            split_count=order.split_count,
            cashier_id=str(order.cashier_id) if order.cashier_id else None,
            estimated_ready_time=order.estimated_ready_time,
            actual_ready_time=order.actual_ready_time,
            completed_time=order.completed_time,
            pager_number=order.pager_number,
            notes=order.notes,
            cancel_reason=order.cancel_reason,
            version=expected_version + 1,
        )
    )
    if result.rowcount != 1:
        raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")


def _cascade_items(session: Session, order: Order, cascade: ItemCascade) -> None:
    for item in order.items:
        if item.status != cascade.to_status:
            continue
        session.execute(
            update(OrderItemModel)
            .where(
                OrderItemModel.id == str(item.item_id),
                OrderItemModel.status.in_([status.value for status in cascade.from_statuses]),
            )
            .values(status=cascade.to_status.value, completed_at=item.completed_at)
        )


def _occupy_table(session: Session, table: Table) -> None:
    result = session.execute(
        update(TableModel)
        .where(
            TableModel.id == str(table.table_id),
            TableModel.status != TableStatus.OCCUPIED.value,
        )
        .values(status=TableStatus.OCCUPIED.value, customer_count=table.customer_count)
    )
    if result.rowcount != 1:
        raise TableUnavailableError(f"table {table.table_number} is already occupied")


def _free_table(session: Session, table_id: TableId) -> None:
    session.execute(
        update(TableModel)
        .where(TableModel.id == str(table_id))
        .values(status=TableStatus.AVAILABLE.value, customer_count=0)
    )


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order, occupied_table: Table | None) -> None:
        with Session(self._engine) as session, session.begin():
            if occupied_table is not None:
                _occupy_table(session, occupied_table)
            session.add(self._to_model(order))
            session.flush()
            if order.pager_number is not None and not claim_pager(
                session, order.pager_number, order.order_id, order.order_time
            ):
                raise PagerUnavailableError(
                    f"pager {order.pager_number} not available or already assigned"
                )

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.items))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        return self._fetch_one(statement)

    def get_by_number(self, order_number: str) -> Order | None:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.items))
            .where(OrderModel.order_number == order_number)
            .limit(1)
        )
        return self._fetch_one(statement)

    def get_by_item(self, item_id: OrderItemId) -> Order | None:
        parent = select(OrderItemModel.order_id).where(OrderItemModel.id == str(item_id))
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.items))
            .where(OrderModel.id.in_(parent.scalar_subquery()))
        )
        return self._fetch_one(statement)

    def list(self, order_filter: OrderFilter, limit: int = 100, offset: int = 0) -> list[Order]:
        statement = select(OrderModel).options(joinedload(OrderModel.items))
        if order_filter.status is not None:
            statement = statement.where(OrderModel.status == order_filter.status.value)
        if order_filter.payment_status is not None:
            statement = statement.where(
                OrderModel.payment_status == order_filter.payment_status.value
            )
        if order_filter.table_id is not None:
            statement = statement.where(OrderModel.table_id == str(order_filter.table_id))
        if order_filter.waiter_id is not None:
            statement = statement.where(OrderModel.waiter_id == str(order_filter.waiter_id))
        if order_filter.placed_on is not None:
            start = datetime.combine(order_filter.placed_on, time.min, tzinfo=timezone.utc)
            statement = statement.where(
                OrderModel.order_time >= start,
                OrderModel.order_time < start + timedelta(days=1),
            )
        if order_filter.exclude_statuses:
            statement = statement.where(
                OrderModel.status.not_in([s.value for s in order_filter.exclude_statuses])
            )
        statement = (
            statement.order_by(OrderModel.order_time.desc(), OrderModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return self._fetch_many(statement)

    def list_by_statuses(
        self,
        statuses: frozenset[OrderStatus],
        placed_before: datetime | None = None,
    ) -> list[Order]:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.items))
            .where(OrderModel.status.in_([status.value for status in statuses]))
            .order_by(OrderModel.order_time, OrderModel.id)
        )
        if placed_before is not None:
            statement = statement.where(OrderModel.order_time < placed_before)
        return self._fetch_many(statement)

    def search(self, query: str, limit: int = 50) -> list[Order]:
        pattern = f"%{query.lower()}%"
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.items))
            .where(
                or_(
                    func.lower(OrderModel.order_number).like(pattern),
                    func.lower(OrderModel.customer_name).like(pattern),
                )
            )
            .order_by(OrderModel.order_time.desc())
            .limit(limit)
        )
        return self._fetch_many(statement)

    def count_by_status_since(self, since: datetime) -> dict[OrderStatus, int]:
        statement = (
            select(OrderModel.status, func.count(OrderModel.id))
            .where(OrderModel.order_time >= since)
            .group_by(OrderModel.status)
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).all()
        return {OrderStatus(status): int(count) for status, count in rows}

    def apply_transition(self, plan: TransitionPlan) -> Order:
        order = plan.order
        with Session(self._engine) as session, session.begin():
            _write_order(session, order, plan.expected_version)
            if plan.item_cascade is not None:
                _cascade_items(session, order, plan.item_cascade)
            if plan.free_table is not None:
                _free_table(session, plan.free_table)
            if plan.release_pager is not None:
                release_pager(session, plan.release_pager, order_id=order.order_id)
            if plan.activate_pager is not None:
                activate_pager(session, plan.activate_pager)
        return self._reload(order.order_id)

    def replace_items(self, order: Order, expected_version: int) -> Order:
        keep = [str(item.item_id) for item in order.items]
        with Session(self._engine) as session, session.begin():
            _write_order(session, order, expected_version)
            session.execute(
                delete(OrderItemModel).where(
                    OrderItemModel.order_id == str(order.order_id),
                    OrderItemModel.id.not_in(keep),
                )
            )
            existing = set(
                session.execute(
                    select(OrderItemModel.id).where(OrderItemModel.order_id == str(order.order_id))
                ).scalars()
            )
            for position, item in enumerate(order.items):
                if str(item.item_id) not in existing:
                    session.add(self._to_item_model(order.order_id, position, item))
        return self._reload(order.order_id)

    def save_billing(self, order: Order, expected_version: int) -> Order:
        with Session(self._engine) as session, session.begin():
            _write_order(session, order, expected_version)
        return self._reload(order.order_id)

    def update_item_status(
        self,
        item_id: OrderItemId,
        status: OrderItemStatus,
        completed_at: datetime | None,
    ) -> None:
        with Session(self._engine) as session, session.begin():
            session.execute(
                update(OrderItemModel)
                .where(OrderItemModel.id == str(item_id))
                .values(status=status.value, completed_at=completed_at)
            )

    def _reload(self, order_id: OrderId) -> Order:
        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after update")
        return updated

    def _fetch_one(self, statement) -> Order | None:
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()
            return self._to_domain(model) if model else None

    def _fetch_many(self, statement) -> list[Order]:
        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
            return [self._to_domain(model) for model in models]

    def _to_item_model(self, order_id: OrderId, position: int, item: OrderItem) -> OrderItemModel:
        return OrderItemModel(
            id=str(item.item_id),
            order_id=str(order_id),
            position=position,
            menu_item_id=str(item.menu_item_id),
            name=item.name,
            quantity=item.quantity,
            price_cents=item.price.amount_cents,
            status=item.status.value,
            special_instructions=item.special_instructions,
            completed_at=item.completed_at,
        )

    def _to_model(self, order: Order) -> OrderModel:
        model = OrderModel(
            id=str(order.order_id),
            order_number=order.order_number,
            table_id=str(order.table_id) if order.table_id else None,
            customer_name=order.customer_name,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value if order.payment_method else None,
            total_cents=order.total_amount.amount_cents,
            tax_cents=order.tax.amount_cents,
            tip_cents=order.tip.amount_cents,
            discount_cents=order.discount.amount_cents,
            split_count=order.split_count,
            waiter_id=str(order.waiter_id) if order.waiter_id else None,
            cashier_id=str(order.cashier_id) if order.cashier_id else None,
            order_time=order.order_time,
            estimated_ready_time=order.estimated_ready_time,
            actual_ready_time=order.actual_ready_time,
            completed_time=order.completed_time,
            pager_number=order.pager_number,
            notes=order.notes,
            cancel_reason=order.cancel_reason,
            version=order.version,
        )
        model.items = [
            self._to_item_model(order.order_id, position, item)
            for position, item in enumerate(order.items)
        ]
        return model

    def _to_domain(self, model: OrderModel) -> Order:
        items = [
            OrderItem(
                item_id=OrderItemId(item.id),
                menu_item_id=MenuItemId(item.menu_item_id),
                name=item.name,
                quantity=item.quantity,
                price=Money(amount_cents=item.price_cents),
                status=OrderItemStatus(item.status),
                special_instructions=item.special_instructions,
                completed_at=as_utc(item.completed_at),
            )
            for item in model.items
        ]
        return Order(
            order_id=OrderId(model.id),
            order_number=model.order_number,
            table_id=TableId(model.table_id) if model.table_id else None,
            customer_name=model.customer_name,
            status=OrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            items=items,
            total_amount=Money(amount_cents=model.total_cents),
            order_time=as_utc(model.order_time),
            waiter_id=UserId(model.waiter_id) if model.waiter_id else None,
            tax=Money(amount_cents=model.tax_cents),
            tip=Money(amount_cents=model.tip_cents),
            discount=Money(amount_cents=model.discount_cents),
            payment_method=PaymentMethod(model.payment_method) if model.payment_method else None,
            split_count=model.split_count,
            cashier_id=UserId(model.cashier_id) if model.cashier_id else None,
            estimated_ready_time=as_utc(model.estimated_ready_time),
            actual_ready_time=as_utc(model.actual_ready_time),
            completed_time=as_utc(model.completed_time),
            pager_number=model.pager_number,
            notes=model.notes,
            cancel_reason=model.cancel_reason,
            version=model.version,
        )
