#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from foodorder.data.models.user import UserModel
from foodorder.data.models.cart import CartModel
from foodorder.data.models.cart_item import CartItemModel, CartItemChoiceModel
from foodorder.data.models.order import OrderModel, OrderItemModel, OrderItemChoiceModel, OrderEventModel

__all__ = [
    "UserModel",
    "CartModel",
    "CartItemModel",
    "CartItemChoiceModel",
    "OrderModel",
    "OrderItemModel",
    "OrderItemChoiceModel",
    "OrderEventModel",
]
