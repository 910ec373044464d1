# foodorder/services/order_service.py
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

from foodorder.data.models.order import OrderModel, OrderItemModel, OrderItemChoiceModel, OrderEventModel
from foodorder.domain.enums import DeliveryMode, OrderStatus
from foodorder.domain.errors import (
    CartChangedError,
    CartNotActiveError,
    EmptyCartError,
    OrderNotFoundError,
    ProfileNotFoundError,
)
from foodorder.domain.schemas import DeliverySelection, OrderOut, OrderSubmittedPayload
from foodorder.repos.cart_repo import CartRepo
from foodorder.repos.order_repo import OrderRepo
from foodorder.repos.user_repo import UserRepo
from foodorder.services.delivery_service import DeliveryLabelResolver
from foodorder.services.notification_service import NotificationService
from foodorder.services.order_number import OrderNumberAllocator, business_day
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineSnapshot:
    """Kopia pozycji koszyka zrobiona przed commitem naglowka."""

    cart_item_id: int
    menu_item_id: str
    menu_item_name: str
    menu_item_name_mm: str | None
    base_price: Decimal
    addons_total: Decimal
    quantity: int
    note: str | None
    total_price: Decimal
    choices: tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Zamienia aktywny koszyk w zamowienie: wszystko albo nic.
    """

    def __init__(
        self,
        db: Session,
        delivery_resolver: DeliveryLabelResolver,
        notification_service: NotificationService | None = None,
        allocator: OrderNumberAllocator | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.user_repo = UserRepo(db)
        self.delivery_resolver = delivery_resolver
        self.notification_service = notification_service or NotificationService()
        self.allocator = allocator or OrderNumberAllocator(db)
        self.clock = clock

    def create_order_from_cart(self, user_id: int, delivery_selection: DeliverySelection) -> Dict[str, Any]:
        """
        Use Case: zlozenie zamowienia z aktywnego koszyka.

        1. Wczytuje profil i niepusty aktywny koszyk
        2. Ustala etykiete dostawy i dzien biznesowy
        3. Przydziela numer dnia i commituje naglowek (OrderNumberAllocator)
        4. W jednej transakcji: pozycje, wybory, koszyk -> submitted (tylko jesli nadal
           aktywny i bez zmian od snapshotu) + czyszczenie, event audytowy
        5. Przy bledzie w kroku 4 usuwa naglowek (compensating delete) i rzuca oryginalny blad
        6. Po commicie publikuje order.submitted (best-effort)
        """
        user = self.user_repo.get_user(user_id)
        if not user:
            raise ProfileNotFoundError(user_id)

        cart = self.cart_repo.get_active_cart_by_user(user_id)
        if not cart:
            raise EmptyCartError()

        lines = self._snapshot_lines(cart.id)
        if not lines:
            raise EmptyCartError()

        cart_id = cart.id
        # suma ze snapshotu pozycji, nie z kolumny koszyka
        subtotal = sum((line.total_price for line in lines), Decimal("0.00"))
        customer_name = user.name
        customer_phone = user.phone_number or ""

        delivery_label = self.delivery_resolver.resolve(delivery_selection)

        now = self.clock()
        display_day = business_day(now)
        status = OrderStatus.ORDER_PROCESSING.value
        is_custom = delivery_selection.mode == DeliveryMode.CUSTOM.value
        coordinates = delivery_selection.coordinates if is_custom else None

        def build_order(counter: int, display_id: str) -> OrderModel:
            return OrderModel(
                cart_id=cart_id,
                user_id=user_id,
                status=status,
                total_items=len(lines),
                subtotal=subtotal,
                discount_total=Decimal("0.00"),
                total_amount=subtotal,
                customer_name=customer_name,
                customer_phone=customer_phone,
                delivery_mode=delivery_selection.mode,
                delivery_location_id=None if is_custom else delivery_selection.location_id,
                delivery_building_id=None if is_custom else delivery_selection.building_id,
                custom_condo_name=delivery_selection.custom_condo_name if is_custom else None,
                custom_building_name=delivery_selection.custom_building_name if is_custom else None,
                custom_place_id=delivery_selection.place_id if is_custom else None,
                custom_lat=coordinates.lat if coordinates else None,
                custom_lng=coordinates.lng if coordinates else None,
                delivery_label=delivery_label,
                is_closed=False,
                created_at=now,
                updated_at=now,
            )

        # naglowek jest juz zacommitowany po tym kroku
        order = self.allocator.allocate(display_day, build_order)
        order_id = order.id
        display_id = order.display_id

        try:
            self._materialize_lines(order_id, lines)
            self._release_cart(cart_id, lines)
            event = self.repo.add_event(
                OrderEventModel(
                    order_id=order_id,
                    actor_type="user",
                    actor_id=str(user_id),
                    event_type="order_submitted",
                    from_status=None,
                    to_status=status,
                    event_metadata={"displayId": display_id},
                    created_at=now,
                )
            )
            event_id = event.id
            self.repo.commit()
        except Exception:
            logger.error(f"Blad po utworzeniu naglowka zamowienia {display_id} (id {order_id}), sprzatam")
            self.repo.rollback()
            self._compensate(order_id, display_id)
            raise

        logger.info(f"Order {display_id} ({order_id}) created from cart {cart_id}, pozycji: {len(lines)}")

        self.notification_service.broadcast_order_submitted(
            OrderSubmittedPayload(
                event_id=str(event_id),
                order_id=order_id,
                display_id=display_id,
                display_day=display_day.isoformat(),
                customer_name=customer_name,
                customer_phone=customer_phone,
                delivery_label=delivery_label,
                total_amount=float(subtotal),
                status=status,
                submitted_at=now.isoformat(),
            )
        )

        return {
            "order_id": order_id,
            "display_id": display_id,
            "display_day": display_day,
            "status": status,
            "total_amount": subtotal,
        }

    def get_order(self, user_id: int, display_id: str, display_day: date | None = None) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        order = self.repo.get_order_for_user(user_id, display_id, display_day)
        if not order:
            raise OrderNotFoundError(display_id)
        return OrderOut.model_validate(order).model_dump()

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [OrderOut.model_validate(o).model_dump() for o in self.repo.list_orders_for_user(user_id)]

    # =====================================================
    # kroki wewnetrzne
    # =====================================================
    def _snapshot_lines(self, cart_id: int) -> List[LineSnapshot]:
        return [
            LineSnapshot(
                cart_item_id=i.id,
                menu_item_id=i.menu_item_id,
                menu_item_name=i.menu_item_name,
                menu_item_name_mm=i.menu_item_name_mm,
                base_price=i.base_price,
                addons_total=i.addons_total,
                quantity=i.quantity,
                note=i.note,
                total_price=i.total_price,
                choices=tuple(
                    (
                        c.group_name,
                        c.group_name_mm,
                        c.option_name,
                        c.option_name_mm,
                        c.extra_price,
                        c.selection_role,
                        c.menu_code,
                    )
                    for c in i.choices
                ),
            )
            for i in self.cart_repo.get_cart_items(cart_id)
        ]

    def _materialize_lines(self, order_id: int, lines: List[LineSnapshot]) -> None:
        order_items = self.repo.add_items(
            [
                OrderItemModel(
                    order_id=order_id,
                    menu_item_id=line.menu_item_id,
                    menu_item_name=line.menu_item_name,
                    menu_item_name_mm=line.menu_item_name_mm,
                    base_price=line.base_price,
                    addons_total=line.addons_total,
                    quantity=line.quantity,
                    note=line.note,
                    total_price=line.total_price,
                    display_order=index,
                )
                for index, line in enumerate(lines)
            ]
        )

        choices = []
        for order_item, line in zip(order_items, lines):
            for group_name, group_name_mm, option_name, option_name_mm, extra_price, role, code in line.choices:
                choices.append(
                    OrderItemChoiceModel(
                        order_item_id=order_item.id,
                        group_name=group_name,
                        group_name_mm=group_name_mm,
                        option_name=option_name,
                        option_name_mm=option_name_mm,
                        extra_price=extra_price,
                        selection_role=role,
                        menu_code=code,
                    )
                )
        self.repo.add_item_choices(choices)

    def _release_cart(self, cart_id: int, lines: List[LineSnapshot]) -> None:
        """
        Koszyk -> submitted, pozycje (z wyborami) usuniete.
        Koszyk musi byc nadal aktywny i zawierac dokladnie pozycje ze snapshotu,
        inaczej cale zlozenie sie wycofuje.
        """
        if self.cart_repo.mark_submitted(cart_id) == 0:
            raise CartNotActiveError(cart_id)

        # czytane po zablokowaniu wiersza koszyka
        expected = {line.cart_item_id: line.quantity for line in lines}
        if self.cart_repo.get_line_quantities(cart_id) != expected:
            raise CartChangedError(cart_id)

        for item in self.cart_repo.get_cart_items(cart_id):
            self.cart_repo.delete_cart_item(item)

    def _compensate(self, order_id: int, display_id: str) -> None:
        try:
            self.repo.delete_order_cascade(order_id)
            self.repo.commit()
            logger.warning(f"Compensating delete: usunieto niekompletne zamowienie {display_id} (id {order_id})")
        except Exception:
            # nie maskujemy oryginalnego bledu
            self.repo.rollback()
            logger.exception(f"Compensating delete zamowienia {display_id} (id {order_id}) nieudany")
