# foodorder/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Literal
from decimal import Decimal
from datetime import date, datetime

from foodorder.utils.settings import MAX_QUANTITY_PER_LINE, MAX_NOTE_LENGTH


# =====================================================
# KOSZYK - wejscie
# =====================================================
class ChoiceSelection(BaseModel):
    """Wybrane opcje w jednej grupie wyboru."""

    group_id: str = Field(..., min_length=1)
    option_ids: List[str] = Field(default_factory=list, max_length=20)


class AddCartItemIn(BaseModel):
    """Schema dla dodawania pozycji menu do koszyka."""

    menu_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
    note: str | None = Field(None, max_length=MAX_NOTE_LENGTH)
    selections: List[ChoiceSelection] = Field(default_factory=list, max_length=25)


class BulkAddCartItemsIn(BaseModel):
    items: List[AddCartItemIn] = Field(..., min_length=1)


class SetMenuSelection(BaseModel):
    """Opcja wybrana z puli podpietej do zestawu."""

    pool_link_id: str = Field(..., min_length=1)
    option_id: str = Field(..., min_length=1)


class AddSetMenuIn(BaseModel):
    """Schema dla dodawania zestawu (set menu) do koszyka."""

    menu_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
    note: str | None = Field(None, max_length=MAX_NOTE_LENGTH)
    selections: List[SetMenuSelection] = Field(..., min_length=1, max_length=25)


class UpdateCartItemIn(BaseModel):
    """0 usuwa pozycje."""

    quantity: int = Field(..., ge=0, le=MAX_QUANTITY_PER_LINE)


# =====================================================
# KOSZYK - wyjscie
# =====================================================
class CartItemChoiceOut(BaseModel):
    group_name: str
    group_name_mm: str | None = None
    option_name: str
    option_name_mm: str | None = None
    extra_price: Decimal
    # base | addon - tylko dla zestawow
    selection_role: str | None = None
    menu_code: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CartItemOut(BaseModel):
    id: int
    menu_item_id: str
    menu_item_name: str
    menu_item_name_mm: str | None = None
    base_price: Decimal
    addons_total: Decimal
    quantity: int
    note: str | None = None
    total_price: Decimal
    hash_key: str
    choices: List[CartItemChoiceOut] = []

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    status: str
    items: List[CartItemOut]
    subtotal: Decimal
    last_activity_at: datetime | None = None


class CartSummaryOut(BaseModel):
    cart_id: int
    subtotal: Decimal
    item_count: int
    total_quantity: int


# =====================================================
# KATALOG (zewnetrzny serwis)
# =====================================================
class ChoiceOptionSnapshot(BaseModel):
    id: str
    name: str
    name_mm: str | None = None
    extra_price: Decimal = Decimal("0.00")
    is_available: bool = True


class ChoiceGroupSnapshot(BaseModel):
    id: str
    title: str
    title_mm: str | None = None
    min_select: int = 0
    # 0 = bez limitu
    max_select: int = 0
    is_required: bool = False
    options: List[ChoiceOptionSnapshot] = []


class SetMenuOptionSnapshot(BaseModel):
    id: str
    name: str
    name_mm: str | None = None
    price: Decimal = Decimal("0.00")
    is_available: bool = True
    menu_code: str | None = None


class PoolLinkSnapshot(BaseModel):
    """
    Pula opcji podpieta do zestawu. Link wyznaczajacy cene (is_price_determining)
    daje cene bazowa, pozostale sa dodatkami. Bez uses_option_price liczy sie flat_price.
    """

    id: str
    label: str
    label_mm: str | None = None
    is_price_determining: bool = False
    is_required: bool = False
    uses_option_price: bool = True
    flat_price: Decimal | None = None
    options: List[SetMenuOptionSnapshot] = []


class MenuItemSnapshot(BaseModel):
    id: str
    name: str
    name_mm: str | None = None
    price: Decimal
    is_available: bool = True
    allows_notes: bool = True
    choice_groups: List[ChoiceGroupSnapshot] = []
    is_set_menu: bool = False
    pool_links: List[PoolLinkSnapshot] = []


class DeliveryBuildingSnapshot(BaseModel):
    id: str
    label: str


class DeliveryLocationSnapshot(BaseModel):
    id: str
    condo_name: str
    buildings: List[DeliveryBuildingSnapshot] = []


# =====================================================
# DOSTAWA
# =====================================================
class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class DeliverySelection(BaseModel):
    """
    preset - lokalizacja (i opcjonalnie budynek) z listy,
    custom - wlasny adres wpisany przez klienta.
    """

    mode: Literal["preset", "custom"]
    location_id: str | None = None
    building_id: str | None = None
    custom_condo_name: str | None = None
    custom_building_name: str | None = None
    place_id: str | None = None
    coordinates: Coordinates | None = None

    @model_validator(mode="after")
    def check_mode_fields(self):
        if self.mode == "preset" and not self.location_id:
            raise ValueError("Lokalizacja dostawy jest wymagana")
        if self.mode == "custom" and not (self.custom_condo_name or "").strip():
            raise ValueError("Nazwa budynku/osiedla jest wymagana")
        return self


# =====================================================
# ZAMOWIENIA
# =====================================================
class OrderCreate(BaseModel):
    delivery_selection: DeliverySelection


class OrderCreatedOut(BaseModel):
    order_id: int
    display_id: str
    display_day: date
    status: str
    total_amount: Decimal


class OrderItemChoiceOut(BaseModel):
    group_name: str
    group_name_mm: str | None = None
    option_name: str
    option_name_mm: str | None = None
    extra_price: Decimal
    # base | addon - tylko dla zestawow
    selection_role: str | None = None
    menu_code: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    menu_item_id: str | None = None
    menu_item_name: str
    menu_item_name_mm: str | None = None
    base_price: Decimal
    addons_total: Decimal
    quantity: int
    note: str | None = None
    total_price: Decimal
    display_order: int
    choices: List[OrderItemChoiceOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    display_id: str
    display_day: date
    status: str
    total_items: int
    subtotal: Decimal
    discount_total: Decimal
    total_amount: Decimal
    customer_name: str
    customer_phone: str
    delivery_mode: str
    delivery_label: str | None = None
    is_closed: bool
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderSubmittedPayload(BaseModel):
    """Stabilny kontrakt eventu order.submitted (camelCase na kablu)."""

    event_id: str = Field(..., alias="eventId")
    order_id: int = Field(..., alias="orderId")
    display_id: str = Field(..., alias="displayId")
    display_day: str = Field(..., alias="displayDay")
    customer_name: str = Field(..., alias="customerName")
    customer_phone: str = Field(..., alias="customerPhone")
    delivery_label: str = Field(..., alias="deliveryLabel")
    total_amount: float = Field(..., alias="totalAmount")
    status: str
    submitted_at: str = Field(..., alias="submittedAt")

    model_config = ConfigDict(populate_by_name=True)


# =====================================================
# USERS
# =====================================================
class UserCreate(BaseModel):
    """Schema dla tworzenia uzytkownika."""

    id: int = Field(..., gt=0, description="ID uzytkownika (musi byc > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imie uzytkownika")
    phone_number: str | None = Field(None, max_length=32)


class UserRead(BaseModel):
    id: int
    name: str
    phone_number: str | None = None

    model_config = ConfigDict(from_attributes=True)
