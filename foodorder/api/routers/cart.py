#foodorder/api/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException

from foodorder.api.deps import current_user_id, get_cart_service
from foodorder.domain.errors import CartChangedError, CartValidationError, NotFoundError
from foodorder.domain.schemas import (
    AddCartItemIn,
    AddSetMenuIn,
    BulkAddCartItemsIn,
    UpdateCartItemIn,
    CartOut,
    CartSummaryOut,
)
from foodorder.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartOut)
def get_cart(
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.get_active_cart(user_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Koszyk nie znaleziony")
    return cart


@router.get("/summary", response_model=CartSummaryOut)
def get_cart_summary(
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    summary = svc.get_cart_summary(user_id)
    if not summary:
        raise HTTPException(status_code=404, detail="Koszyk nie znaleziony")
    return summary


@router.post("/items", response_model=CartOut)
def add_item(
    payload: AddCartItemIn,
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_item(
            user_id=user_id,
            menu_item_id=payload.menu_item_id,
            quantity=payload.quantity,
            note=payload.note,
            selections=payload.selections,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartChangedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/items/bulk", response_model=CartOut)
def add_items(
    payload: BulkAddCartItemsIn,
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_items(user_id, payload.items)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartChangedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/set-menu", response_model=CartOut)
def add_set_menu(
    payload: AddSetMenuIn,
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_set_menu(
            user_id=user_id,
            menu_item_id=payload.menu_item_id,
            quantity=payload.quantity,
            note=payload.note,
            selections=payload.selections,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartChangedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/items/{cart_item_id}", response_model=CartOut)
def update_item(
    cart_item_id: int,
    payload: UpdateCartItemIn,
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.update_quantity(user_id, cart_item_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/items/{cart_item_id}", response_model=CartOut)
def remove_item(
    cart_item_id: int,
    user_id: int = Depends(current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(user_id, cart_item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
