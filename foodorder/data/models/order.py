from sqlalchemy import (
    Column, Integer, ForeignKey, String, Text, DateTime, Date, Numeric, Boolean, Float, JSON, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from foodorder.data.database import Base
from foodorder.domain.enums import OrderStatus


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)

    # numeracja dzienna: (display_day, display_counter) unikalne globalnie
    display_day = Column(Date, nullable=False)
    display_counter = Column(Integer, nullable=False)
    display_id = Column(String(16), nullable=False)

    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(40), nullable=False, default=OrderStatus.ORDER_PROCESSING.value)
    total_items = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_total = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False, default="")

    delivery_mode = Column(String(10), nullable=False)
    delivery_location_id = Column(String, nullable=True)
    delivery_building_id = Column(String, nullable=True)
    custom_condo_name = Column(String, nullable=True)
    custom_building_name = Column(String, nullable=True)
    custom_place_id = Column(String, nullable=True)
    custom_lat = Column(Float, nullable=True)
    custom_lng = Column(Float, nullable=True)
    delivery_label = Column(String, nullable=True)

    is_closed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.display_order",
    )

    __table_args__ = (
        UniqueConstraint("display_day", "display_counter", name="uq_orders_day_counter"),
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # brak FK do katalogu - pozycja zamowienia to niezalezna kopia
    menu_item_id = Column(String, nullable=True)
    menu_item_name = Column(String, nullable=False)
    menu_item_name_mm = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    addons_total = Column(Numeric(10, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    order = relationship("OrderModel", back_populates="items")
    choices = relationship(
        "OrderItemChoiceModel",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemChoiceModel.id",
    )


class OrderItemChoiceModel(Base):
    __tablename__ = "order_item_choices"

    id = Column(Integer, primary_key=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    group_name = Column(String, nullable=False)
    group_name_mm = Column(String, nullable=True)
    option_name = Column(String, nullable=False)
    option_name_mm = Column(String, nullable=True)
    extra_price = Column(Numeric(10, 2), nullable=False, default=0)
    # zestawy: base (wyznacza cene) albo addon
    selection_role = Column(String(10), nullable=True)
    menu_code = Column(String, nullable=True)

    order_item = relationship("OrderItemModel", back_populates="choices")


class OrderEventModel(Base):
    """Log audytowy - tylko insert, nigdy update/delete."""

    __tablename__ = "order_events"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_type = Column(String(20), nullable=False)
    actor_id = Column(String, nullable=True)
    event_type = Column(String(40), nullable=False)
    from_status = Column(String(40), nullable=True)
    to_status = Column(String(40), nullable=True)
    # "metadata" jest zarezerwowane w declarative, stad inna nazwa atrybutu
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
