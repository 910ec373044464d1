from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Any, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodorder.data.models.cart import CartModel
from foodorder.data.models.cart_item import CartItemModel, CartItemChoiceModel
from foodorder.domain.enums import CartStatus
from foodorder.domain.errors import (
    CartValidationError,
    CartCapacityError,
    CartItemNotFoundError,
    CartNotActiveError,
    MenuItemUnavailableError,
)
from foodorder.domain.schemas import AddCartItemIn, ChoiceSelection, MenuItemSnapshot, SetMenuSelection
from foodorder.repos.cart_repo import CartRepo
from foodorder.services.cart_hash import generate_cart_item_hash, generate_set_menu_hash, normalize_selections
from foodorder.services.catalog_client import CatalogClient
from foodorder.utils.settings import MAX_QUANTITY_PER_LINE, MAX_NOTE_LENGTH
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)

ROLE_BASE = "base"
ROLE_ADDON = "addon"


@dataclass
class ChoiceDetail:
    group_id: str
    group_name: str
    group_name_mm: str | None
    option_id: str
    option_name: str
    option_name_mm: str | None
    extra_price: Decimal
    selection_role: str | None = None
    menu_code: str | None = None


@dataclass
class InsertPlan:
    menu_item: MenuItemSnapshot
    base_price: Decimal
    quantity: int
    note: str | None
    hash_key: str
    choices: List[ChoiceDetail] = field(default_factory=list)

    @property
    def addons_total(self) -> Decimal:
        return sum((c.extra_price for c in self.choices), Decimal("0.00"))


@dataclass
class IncrementPlan:
    cart_item_id: int
    delta: int
    planned_quantity: int


Plans = Dict[str, InsertPlan | IncrementPlan]


class CartService:
    """
    Use case'y koszyka (CQRS):
    commands (add, update, remove) modyfikuja stan w jednej jednostce pracy
    razem z przeliczeniem subtotal, query (get, summary) tylko odczyt.
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogClient,
        max_quantity: int = MAX_QUANTITY_PER_LINE,
    ):
        self.repo = CartRepo(db)
        self.catalog = catalog
        self.max_quantity = max_quantity

    # =====================================================
    # QUERY
    # =====================================================
    def get_active_cart(self, user_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_active_cart_by_user(user_id)
        if not cart:
            return None
        return self._cart_to_dict(cart)

    def get_cart_summary(self, user_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_active_cart_by_user(user_id)
        if not cart:
            return None

        item_count, total_quantity = self.repo.get_quantity_stats(cart.id)
        return {
            "cart_id": cart.id,
            "subtotal": cart.subtotal,
            "item_count": item_count,
            "total_quantity": total_quantity,
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def ensure_active_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_active_cart_by_user(user_id)
        if existing:
            return existing

        try:
            created = self.repo.create_cart(
                CartModel(
                    user_id=user_id,
                    status=CartStatus.ACTIVE.value,
                    subtotal=Decimal("0.00"),
                )
            )
            self.repo.commit()
        except IntegrityError:
            # rownolegle zapytanie utworzylo koszyk pierwsze
            self.repo.rollback()
            existing = self.repo.get_active_cart_by_user(user_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created

    def add_item(
        self,
        user_id: int,
        menu_item_id: str,
        quantity: int,
        note: str | None = None,
        selections: List[ChoiceSelection] | None = None,
    ) -> Dict[str, Any]:
        # bez walidacji pydantic - limity sprawdza _build_plans (wlasne bledy domenowe)
        return self.add_items(
            user_id,
            [
                AddCartItemIn.model_construct(
                    menu_item_id=menu_item_id,
                    quantity=quantity,
                    note=note,
                    selections=selections or [],
                )
            ],
        )

    def add_items(self, user_id: int, entries: List[AddCartItemIn]) -> Dict[str, Any]:
        if not entries:
            raise CartValidationError("Wymagana jest co najmniej jedna pozycja")

        return self._add_with_retry(user_id, lambda cart_id: self._build_plans(cart_id, entries))

    def add_set_menu(
        self,
        user_id: int,
        menu_item_id: str,
        quantity: int,
        note: str | None = None,
        selections: List[SetMenuSelection] | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: dodanie zestawu. Cena liczona z wybranych opcji pul:
        opcja z linku wyznaczajacego cene to cena bazowa, reszta to dodatki.
        """
        return self._add_with_retry(
            user_id,
            lambda cart_id: self._build_set_menu_plans(cart_id, menu_item_id, quantity, note, selections or []),
        )

    def update_quantity(self, user_id: int, cart_item_id: int, quantity: int) -> Dict[str, Any]:
        item = self.repo.get_cart_item_for_user(user_id, cart_item_id)
        if not item:
            raise CartItemNotFoundError(cart_item_id)

        cart = item.cart
        try:
            if quantity <= 0:
                logger.info(f"Usuwanie pozycji {cart_item_id} (ilosc 0) z koszyka {cart.id}")
                self.repo.delete_cart_item(item)
            else:
                quantity = min(quantity, self.max_quantity)
                # cena z zapisanego snapshotu, nie z aktualnego menu
                item.quantity = quantity
                item.total_price = item.unit_price * quantity

            self.repo.recalculate_subtotal(cart)
            self.repo.commit()
        except CartNotActiveError:
            # koszyk zostal zlozony w miedzyczasie - pozycji juz nie ma w aktywnym koszyku
            self.repo.rollback()
            raise CartItemNotFoundError(cart_item_id)
        except Exception:
            self.repo.rollback()
            raise

        return self._cart_to_dict(cart)

    def remove_item(self, user_id: int, cart_item_id: int) -> Dict[str, Any]:
        item = self.repo.get_cart_item_for_user(user_id, cart_item_id)
        if not item:
            raise CartItemNotFoundError(cart_item_id)

        cart = item.cart
        logger.info(f"Usuwanie pozycji {cart_item_id} z koszyka {cart.id}")
        try:
            self.repo.delete_cart_item(item)
            self.repo.recalculate_subtotal(cart)
            self.repo.commit()
        except CartNotActiveError:
            self.repo.rollback()
            raise CartItemNotFoundError(cart_item_id)
        except Exception:
            self.repo.rollback()
            raise

        return self._cart_to_dict(cart)

    # =====================================================
    # wewnetrzne
    # =====================================================
    def _add_with_retry(self, user_id: int, build_plans: Callable[[int], Plans]) -> Dict[str, Any]:
        try:
            return self._apply_add(user_id, build_plans)
        except IntegrityError:
            # ktos wstawil ta sama konfiguracje rownolegle - druga proba to merge
            logger.warning(f"Konflikt hash_key w koszyku uzytkownika {user_id}, ponawiam jako merge")
        except CartNotActiveError as e:
            # koszyk zlozony w trakcie dodawania - druga proba trafia do nowego koszyka
            logger.warning(f"Koszyk {e.cart_id} uzytkownika {user_id} zostal zlozony, ponawiam na nowym koszyku")
        return self._apply_add(user_id, build_plans)

    def _apply_add(self, user_id: int, build_plans: Callable[[int], Plans]) -> Dict[str, Any]:
        cart = self.ensure_active_cart(user_id)

        # walidacja + katalog zanim cokolwiek zapiszemy
        plans = build_plans(cart.id)

        try:
            for plan in plans.values():
                if isinstance(plan, InsertPlan):
                    self._insert_line(cart.id, plan)
                    continue

                rowcount = self.repo.increment_quantity(plan.cart_item_id, plan.delta, self.max_quantity)
                if rowcount == 0:
                    raise CartCapacityError(self.max_quantity)

            subtotal = self.repo.recalculate_subtotal(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Koszyk {cart.id}: dodano {len(plans)} konfiguracji, subtotal {subtotal}")
        return self._cart_to_dict(cart)

    def _insert_line(self, cart_id: int, plan: InsertPlan) -> CartItemModel:
        unit_total = plan.base_price + plan.addons_total
        item = CartItemModel(
            cart_id=cart_id,
            menu_item_id=plan.menu_item.id,
            menu_item_name=plan.menu_item.name,
            menu_item_name_mm=plan.menu_item.name_mm,
            base_price=plan.base_price,
            addons_total=plan.addons_total,
            quantity=plan.quantity,
            note=plan.note,
            total_price=unit_total * plan.quantity,
            hash_key=plan.hash_key,
            choices=[
                CartItemChoiceModel(
                    group_name=c.group_name,
                    group_name_mm=c.group_name_mm,
                    option_name=c.option_name,
                    option_name_mm=c.option_name_mm,
                    extra_price=c.extra_price,
                    selection_role=c.selection_role,
                    menu_code=c.menu_code,
                )
                for c in plan.choices
            ],
        )
        logger.info(f"Dodaje nowa pozycje {plan.menu_item.id} x{plan.quantity} do koszyka {cart_id}")
        return self.repo.add_cart_item(item)

    def _check_quantity(self, quantity: int) -> None:
        if quantity < 1:
            raise CartValidationError("Ilosc musi byc wieksza niz 0")
        if quantity > self.max_quantity:
            raise CartCapacityError(self.max_quantity)

    def _fetch_available(self, menu_item_id: str) -> MenuItemSnapshot:
        menu_item = self.catalog.fetch_menu_item(menu_item_id)
        if menu_item is None or not menu_item.is_available:
            raise MenuItemUnavailableError(menu_item_id)
        return menu_item

    def _normalize_note(self, menu_item: MenuItemSnapshot, note: str | None) -> str | None:
        if menu_item.allows_notes and note and note.strip():
            return note.strip()[:MAX_NOTE_LENGTH]
        return None

    def _merge_plan(self, plans: Plans, cart_id: int, candidate: InsertPlan) -> None:
        """
        Dokleja konfiguracje do planu: ten sam hash w batchu -> suma ilosci,
        hash juz w koszyku -> increment, inaczej nowa pozycja.
        """
        hash_key = candidate.hash_key
        quantity = candidate.quantity

        planned = plans.get(hash_key)
        if planned is not None:
            if isinstance(planned, InsertPlan):
                if planned.quantity + quantity > self.max_quantity:
                    raise CartCapacityError(self.max_quantity)
                planned.quantity += quantity
            else:
                if planned.planned_quantity + quantity > self.max_quantity:
                    raise CartCapacityError(self.max_quantity)
                planned.delta += quantity
                planned.planned_quantity += quantity
            return

        existing = self.repo.get_cart_item_by_hash(cart_id, hash_key)
        if existing is not None:
            next_quantity = existing.quantity + quantity
            if next_quantity > self.max_quantity:
                raise CartCapacityError(self.max_quantity)
            logger.info(
                f"Konfiguracja juz jest w koszyku {cart_id}, zwiekszam ilosc "
                f"z {existing.quantity} do {next_quantity}"
            )
            plans[hash_key] = IncrementPlan(
                cart_item_id=existing.id,
                delta=quantity,
                planned_quantity=next_quantity,
            )
            return

        plans[hash_key] = candidate

    def _build_plans(self, cart_id: int, entries: List[AddCartItemIn]) -> Plans:
        plans: Plans = {}

        for entry in entries:
            self._check_quantity(entry.quantity)
            menu_item = self._fetch_available(entry.menu_item_id)

            choices = self._validate_selections(menu_item, entry.selections)
            note = self._normalize_note(menu_item, entry.note)

            self._merge_plan(
                plans,
                cart_id,
                InsertPlan(
                    menu_item=menu_item,
                    base_price=menu_item.price,
                    quantity=entry.quantity,
                    note=note,
                    hash_key=generate_cart_item_hash(menu_item.id, entry.selections, note),
                    choices=choices,
                ),
            )

        return plans

    def _build_set_menu_plans(
        self,
        cart_id: int,
        menu_item_id: str,
        quantity: int,
        note: str | None,
        selections: List[SetMenuSelection],
    ) -> Plans:
        self._check_quantity(quantity)
        menu_item = self._fetch_available(menu_item_id)
        if not menu_item.is_set_menu:
            raise CartValidationError("Ta pozycja nie jest zestawem")
        if not menu_item.pool_links:
            raise CartValidationError("Nieprawidlowa konfiguracja zestawu")
        if not selections:
            raise CartValidationError("Wymagany jest co najmniej jeden wybor")

        links = {link.id: link for link in menu_item.pool_links}
        seen: set[tuple[str, str]] = set()
        base_price = Decimal("0.00")
        has_base = False
        choices: List[ChoiceDetail] = []

        for selection in selections:
            link = links.get(selection.pool_link_id)
            if link is None:
                raise CartValidationError("Nieprawidlowy wybor w zestawie")

            option = next((o for o in link.options if o.id == selection.option_id), None)
            if option is None:
                raise CartValidationError("Nieprawidlowa opcja w zestawie")
            if not option.is_available:
                raise CartValidationError(f"Opcja {option.name} jest niedostepna")

            key = (link.id, option.id)
            if key in seen:
                raise CartValidationError("Ta sama opcja zestawu wybrana dwa razy")
            seen.add(key)

            use_flat = not link.uses_option_price and link.flat_price is not None
            unit_price = link.flat_price if use_flat else option.price

            if link.is_price_determining:
                if has_base:
                    raise CartValidationError("Zestaw moze miec tylko jedna opcje bazowa")
                has_base = True
                base_price = unit_price

            choices.append(
                ChoiceDetail(
                    group_id=link.id,
                    group_name=link.label,
                    group_name_mm=link.label_mm,
                    option_id=option.id,
                    option_name=option.name,
                    option_name_mm=option.name_mm,
                    extra_price=Decimal("0.00") if link.is_price_determining else unit_price,
                    selection_role=ROLE_BASE if link.is_price_determining else ROLE_ADDON,
                    menu_code=option.menu_code,
                )
            )

        selected_links = {link_id for link_id, _ in seen}
        for link in menu_item.pool_links:
            if link.is_required and link.id not in selected_links:
                raise CartValidationError(f"Brak wymaganego wyboru: {link.label}")

        note = self._normalize_note(menu_item, note)
        plans: Plans = {}
        self._merge_plan(
            plans,
            cart_id,
            InsertPlan(
                menu_item=menu_item,
                base_price=base_price,
                quantity=quantity,
                note=note,
                hash_key=generate_set_menu_hash(
                    menu_item.id,
                    [(c.selection_role, c.option_id) for c in choices],
                    note,
                ),
                choices=choices,
            ),
        )
        return plans

    def _validate_selections(
        self, menu_item: MenuItemSnapshot, selections: List[ChoiceSelection]
    ) -> List[ChoiceDetail]:
        """Sprawdza wybor wzgledem aktualnych grup z katalogu, zwraca snapshot opcji."""
        groups = {g.id: g for g in menu_item.choice_groups}
        selected = {s["groupId"]: s["optionIds"] for s in normalize_selections(selections)}

        for group_id in selected:
            if group_id not in groups:
                raise CartValidationError("Nieprawidlowa grupa wyboru")

        details: List[ChoiceDetail] = []
        for group in menu_item.choice_groups:
            option_ids = selected.get(group.id, [])

            min_required = max(group.min_select, 1 if group.is_required else 0)
            if len(option_ids) < min_required:
                raise CartValidationError(f"Brak wymaganego wyboru w grupie {group.title}")

            if group.max_select > 0 and len(option_ids) > group.max_select:
                raise CartValidationError(f"Za duzo opcji wybranych w grupie {group.title}")

            options = {o.id: o for o in group.options}
            for option_id in option_ids:
                option = options.get(option_id)
                if option is None or not option.is_available:
                    raise CartValidationError("Nieprawidlowa opcja wyboru")
                details.append(
                    ChoiceDetail(
                        group_id=group.id,
                        group_name=group.title,
                        group_name_mm=group.title_mm,
                        option_id=option.id,
                        option_name=option.name,
                        option_name_mm=option.name_mm,
                        extra_price=option.extra_price,
                    )
                )

        return details

    def _cart_to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "id": i.id,
                    "menu_item_id": i.menu_item_id,
                    "menu_item_name": i.menu_item_name,
                    "menu_item_name_mm": i.menu_item_name_mm,
                    "base_price": i.base_price,
                    "addons_total": i.addons_total,
                    "quantity": i.quantity,
                    "note": i.note,
                    "total_price": i.total_price,
                    "hash_key": i.hash_key,
                    "choices": [
                        {
                            "group_name": c.group_name,
                            "group_name_mm": c.group_name_mm,
                            "option_name": c.option_name,
                            "option_name_mm": c.option_name_mm,
                            "extra_price": c.extra_price,
                            "selection_role": c.selection_role,
                            "menu_code": c.menu_code,
                        }
                        for c in i.choices
                    ],
                }
                for i in items
            ],
            "subtotal": cart.subtotal,
            "last_activity_at": cart.last_activity_at,
        }
