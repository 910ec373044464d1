# foodorder/repos/cart_repo.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session, selectinload

from foodorder.data.models.cart import CartModel
from foodorder.data.models.cart_item import CartItemModel
from foodorder.domain.enums import CartStatus
from foodorder.domain.errors import CartNotActiveError


class CartRepo:
    """
    Zapytania i zapisy koszyka. Metody zapisujace robia tylko flush,
    commit/rollback nalezy do serwisu (jedna jednostka pracy na operacje).
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- odczyt ----------
    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(
                CartModel.user_id == user_id,
                CartModel.status == CartStatus.ACTIVE.value,
            )
        ).scalar_one_or_none()

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .options(selectinload(CartItemModel.choices))
                .order_by(CartItemModel.created_at, CartItemModel.id)
            ).scalars().all()
        )

    def get_cart_item_by_hash(self, cart_id: int, hash_key: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.hash_key == hash_key,
            )
        ).scalar_one_or_none()

    def get_cart_item_for_user(self, user_id: int, cart_item_id: int) -> CartItemModel | None:
        """Pozycja tylko jesli nalezy do AKTYWNEGO koszyka tego usera."""
        return self.db.execute(
            select(CartItemModel)
            .join(CartModel, CartItemModel.cart_id == CartModel.id)
            .where(
                CartItemModel.id == cart_item_id,
                CartModel.user_id == user_id,
                CartModel.status == CartStatus.ACTIVE.value,
            )
        ).scalar_one_or_none()

    def get_quantity_stats(self, cart_id: int) -> tuple[int, int]:
        item_count, total_quantity = self.db.execute(
            select(func.count(CartItemModel.id), func.coalesce(func.sum(CartItemModel.quantity), 0))
            .where(CartItemModel.cart_id == cart_id)
        ).one()
        return int(item_count), int(total_quantity)

    # ---------- zapis ----------
    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def increment_quantity(self, cart_item_id: int, delta: int, max_quantity: int) -> int:
        """
        Atomowy increment z warunkiem na limit - baza sama odrzuca przekroczenie.
        Zwraca rowcount (0 = limit przekroczony albo pozycja zniknela).
        """
        new_quantity = CartItemModel.quantity + delta
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.id == cart_item_id,
                new_quantity <= max_quantity,
            )
            .values(
                quantity=new_quantity,
                total_price=(CartItemModel.base_price + CartItemModel.addons_total) * new_quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        # obiekty w sesji moga miec stara ilosc
        self.db.expire_all()
        return result.rowcount

    def delete_cart_item(self, item: CartItemModel) -> None:
        # kaskada ORM usuwa tez wybory
        self.db.delete(item)
        self.db.flush()

    def recalculate_subtotal(self, cart: CartModel) -> Decimal:
        """
        Suma total_price pozycji zapisana do koszyka, w tej samej transakcji.
        Zapis idzie warunkowo na status active: koszyk zlozony w miedzyczasie
        konczy sie CartNotActiveError (serwis robi rollback calej operacji).
        """
        self.db.flush()
        cart_id = cart.id
        total = self.db.execute(
            select(func.coalesce(func.sum(CartItemModel.total_price), 0))
            .where(CartItemModel.cart_id == cart_id)
        ).scalar_one()
        subtotal = Decimal(str(total)).quantize(Decimal("0.01"))

        now = datetime.now(timezone.utc)
        result = self.db.execute(
            update(CartModel)
            .where(
                CartModel.id == cart_id,
                CartModel.status == CartStatus.ACTIVE.value,
            )
            .values(subtotal=subtotal, last_activity_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise CartNotActiveError(cart_id)

        self.db.expire(cart)
        return subtotal

    def get_line_quantities(self, cart_id: int) -> dict[int, int]:
        rows = self.db.execute(
            select(CartItemModel.id, CartItemModel.quantity).where(CartItemModel.cart_id == cart_id)
        ).all()
        return {item_id: quantity for item_id, quantity in rows}

    def mark_submitted(self, cart_id: int) -> int:
        """
        active -> submitted tylko jesli koszyk nadal jest aktywny.
        Zwraca rowcount (0 = ktos zlozyl go pierwszy).
        """
        now = datetime.now(timezone.utc)
        result = self.db.execute(
            update(CartModel)
            .where(
                CartModel.id == cart_id,
                CartModel.status == CartStatus.ACTIVE.value,
            )
            .values(
                status=CartStatus.SUBMITTED.value,
                subtotal=Decimal("0.00"),
                last_activity_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
