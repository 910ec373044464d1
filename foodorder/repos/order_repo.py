# foodorder/repos/order_repo.py
from datetime import date

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session, selectinload

from foodorder.data.models.order import OrderModel, OrderItemModel, OrderItemChoiceModel, OrderEventModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_max_display_counter(self, display_day: date) -> int:
        value = self.db.execute(
            select(func.max(OrderModel.display_counter)).where(OrderModel.display_day == display_day)
        ).scalar_one_or_none()
        return value or 0

    def counter_taken(self, display_day: date, display_counter: int) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(
                OrderModel.display_day == display_day,
                OrderModel.display_counter == display_counter,
            )
        ).first() is not None

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_user(
        self, user_id: int, display_id: str, display_day: date | None = None
    ) -> OrderModel | None:
        """display_id powtarza sie co dzien - bez dnia zwracamy najnowsze."""
        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id, OrderModel.display_id == display_id)
            .options(selectinload(OrderModel.items).selectinload(OrderItemModel.choices))
            .order_by(OrderModel.display_day.desc())
            .limit(1)
        )
        if display_day is not None:
            stmt = stmt.where(OrderModel.display_day == display_day)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders_for_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(selectinload(OrderModel.items).selectinload(OrderItemModel.choices))
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def add_items(self, items: list[OrderItemModel]) -> list[OrderItemModel]:
        self.db.add_all(items)
        self.db.flush()
        return items

    def add_item_choices(self, choices: list[OrderItemChoiceModel]) -> None:
        if not choices:
            return
        self.db.add_all(choices)
        self.db.flush()

    def add_event(self, event: OrderEventModel) -> OrderEventModel:
        self.db.add(event)
        self.db.flush()
        return event

    def delete_order_cascade(self, order_id: int) -> None:
        """Usuwa zamowienie razem z wierszami od niego zaleznymi (bez polegania na FK w bazie)."""
        item_ids = select(OrderItemModel.id).where(OrderItemModel.order_id == order_id)
        self.db.execute(
            delete(OrderItemChoiceModel)
            .where(OrderItemChoiceModel.order_item_id.in_(item_ids))
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(OrderItemModel)
            .where(OrderItemModel.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(OrderEventModel)
            .where(OrderEventModel.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(synchronize_session=False)
        )

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
