# foodorder/domain/enums.py
from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "active"
    SUBMITTED = "submitted"


class OrderStatus(str, Enum):
    """
    Cykl zycia zamowienia. Ten serwis tworzy tylko ORDER_PROCESSING,
    reszta przejsc nalezy do panelu admina / platnosci.
    """

    ORDER_PROCESSING = "order_processing"
    AWAITING_PAYMENT = "awaiting_payment"
    PAYMENT_REVIEW = "payment_review"
    ORDER_IN_KITCHEN = "order_in_kitchen"
    ORDER_OUT_FOR_DELIVERY = "order_out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryMode(str, Enum):
    PRESET = "preset"
    CUSTOM = "custom"
