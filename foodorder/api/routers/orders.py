# foodorder/api/routers/orders.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from foodorder.api.deps import current_user_id, get_order_service
from foodorder.domain.errors import (
    CartChangedError,
    CartValidationError,
    EmptyCartError,
    NotFoundError,
    OrderNumberConflictError,
)
from foodorder.domain.schemas import OrderCreate, OrderCreatedOut, OrderOut
from foodorder.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Depends(current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """
    Sklada zamowienie z aktywnego koszyka.
    Powiadomienie realtime idzie asynchronicznie po zapisie.
    """
    try:
        return svc.create_order_from_cart(user_id, payload.delivery_selection)
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (OrderNumberConflictError, CartChangedError) as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/", response_model=List[OrderOut])
def list_orders(
    user_id: int = Depends(current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(user_id)


@router.get("/{display_id}", response_model=OrderOut)
def get_order(
    display_id: str,
    display_day: date | None = Query(None),
    user_id: int = Depends(current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegoly zamowienia.
    """
    try:
        return svc.get_order(user_id, display_id, display_day)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
