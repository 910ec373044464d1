from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, Text, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from foodorder.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(String, nullable=False)

    # snapshot z katalogu w chwili dodania
    menu_item_name = Column(String, nullable=False)
    menu_item_name_mm = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    addons_total = Column(Numeric(10, 2), nullable=False, default=0)

    quantity = Column(Integer, nullable=False, default=1)
    note = Column(Text, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    hash_key = Column(String(64), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    cart = relationship("CartModel", back_populates="items")
    choices = relationship(
        "CartItemChoiceModel",
        back_populates="cart_item",
        cascade="all, delete-orphan",
        order_by="CartItemChoiceModel.id",
    )

    __table_args__ = (UniqueConstraint("cart_id", "hash_key", name="uq_cart_items_cart_hash"),)

    @property
    def unit_price(self):
        return self.base_price + self.addons_total


class CartItemChoiceModel(Base):
    __tablename__ = "cart_item_choices"

    id = Column(Integer, primary_key=True)
    cart_item_id = Column(Integer, ForeignKey("cart_items.id", ondelete="CASCADE"), nullable=False, index=True)

    group_name = Column(String, nullable=False)
    group_name_mm = Column(String, nullable=True)
    option_name = Column(String, nullable=False)
    option_name_mm = Column(String, nullable=True)
    extra_price = Column(Numeric(10, 2), nullable=False, default=0)
    # zestawy: base (wyznacza cene) albo addon
    selection_role = Column(String(10), nullable=True)
    menu_code = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    cart_item = relationship("CartItemModel", back_populates="choices")
