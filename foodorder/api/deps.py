# foodorder/api/deps.py
from fastapi import Depends, Query
from sqlalchemy.orm import Session

from foodorder.data.database import get_db
from foodorder.services.cart_service import CartService
from foodorder.services.catalog_client import CatalogClient
from foodorder.services.delivery_service import DeliveryLabelResolver
from foodorder.services.notification_service import NotificationService
from foodorder.services.order_service import OrderService


def current_user_id(user_id: int = Query(..., gt=0)) -> int:
    # autoryzacja jest poza tym serwisem, gateway podaje id usera
    return user_id


def get_catalog_client() -> CatalogClient:
    return CatalogClient()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: CatalogClient = Depends(get_catalog_client),
) -> CartService:
    return CartService(db=db, catalog=catalog)


def get_order_service(
    db: Session = Depends(get_db),
    catalog: CatalogClient = Depends(get_catalog_client),
    notifications: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        delivery_resolver=DeliveryLabelResolver(catalog),
        notification_service=notifications,
    )
