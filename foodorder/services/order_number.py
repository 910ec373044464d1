# foodorder/services/order_number.py
"""
Dzienna numeracja zamowien (OR0001, OR0002, ...) bez centralnego licznika.

Optymistycznie: czytamy MAX(display_counter) dla dnia, wstawiamy naglowek
z max + 1 i commitujemy. Unikalne ograniczenie (display_day, display_counter)
w bazie odrzuca rownolegly insert z tym samym licznikiem - wtedy czytamy
max jeszcze raz i probujemy ponownie. Dziury w numeracji sa dopuszczalne,
duplikaty nie.
"""
from datetime import date, datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tenacity import RetryError

from foodorder.data.models.order import OrderModel
from foodorder.domain.errors import OrderNumberConflictError
from foodorder.repos.order_repo import OrderRepo
from foodorder.utils.retry import conflict_retrying
from foodorder.utils.settings import (
    BUSINESS_TIMEZONE,
    ORDER_DISPLAY_PREFIX,
    ORDER_NUMBER_MAX_ATTEMPTS,
    ORDER_NUMBER_RETRY_WAIT_MAX,
)
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)

DISPLAY_COUNTER_WIDTH = 4


class DisplayCounterTaken(Exception):
    """Ktos zajal ten licznik przed nami - sygnal do ponowienia."""


def business_day(now: datetime | None = None, tz_name: str = BUSINESS_TIMEZONE) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def format_display_id(counter: int, prefix: str = ORDER_DISPLAY_PREFIX) -> str:
    return f"{prefix}{counter:0{DISPLAY_COUNTER_WIDTH}d}"


class OrderNumberAllocator:
    def __init__(
        self,
        db: Session,
        max_attempts: int = ORDER_NUMBER_MAX_ATTEMPTS,
        retry_wait_max: float = ORDER_NUMBER_RETRY_WAIT_MAX,
        prefix: str = ORDER_DISPLAY_PREFIX,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.max_attempts = max_attempts
        self.retry_wait_max = retry_wait_max
        self.prefix = prefix

    def allocate(self, display_day: date, build_order: Callable[[int, str], OrderModel]) -> OrderModel:
        """
        Wstawia i commituje naglowek zamowienia z kolejnym wolnym licznikiem dnia.

        build_order(counter, display_id) musi zwrocic nowy, niedodany OrderModel.
        Sesja nie moze miec innych niezacommitowanych zmian - commit je obejmie.
        """
        try:
            for attempt in conflict_retrying(DisplayCounterTaken, self.max_attempts, self.retry_wait_max):
                with attempt:
                    return self._try_insert(display_day, build_order, attempt.retry_state.attempt_number)
        except RetryError as e:
            logger.error(
                f"Wyczerpano {self.max_attempts} prob przydzialu numeru zamowienia na dzien {display_day}"
            )
            raise OrderNumberConflictError(display_day, self.max_attempts) from e

    def _try_insert(
        self, display_day: date, build_order: Callable[[int, str], OrderModel], attempt: int
    ) -> OrderModel:
        counter = self.repo.get_max_display_counter(display_day) + 1
        display_id = format_display_id(counter, self.prefix)

        order = build_order(counter, display_id)
        order.display_day = display_day
        order.display_counter = counter
        order.display_id = display_id

        self.db.add(order)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if not self.repo.counter_taken(display_day, counter):
                # inne ograniczenie niz licznik - to nie jest konflikt numeracji
                raise
            logger.warning(
                f"Licznik {display_id} na dzien {display_day} zajety (proba {attempt}), ponawiam"
            )
            raise DisplayCounterTaken(display_id) from e

        self.db.refresh(order)
        logger.info(f"Przydzielono numer {display_id} na dzien {display_day} (proba {attempt})")
        return order
