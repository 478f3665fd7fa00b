# orderpipe/api/routers/carts.py
from fastapi import APIRouter, Depends

from orderpipe.api.deps import get_cart_service, get_principal
from orderpipe.domain.schemas import CartItemIn, CartItemQuantityIn, CartOut
from orderpipe.services.access_guard import Principal
from orderpipe.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def read_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.read_cart(principal)


@router.post("/items", response_model=CartOut)
def upsert_cart_item(
    payload: CartItemIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    """
    Add a menu or overwrite its quantity. Menus of another store are
    rejected until the cart is cleared.
    """
    return svc.upsert_cart_line(
        principal,
        store_id=payload.store_id,
        menu_id=payload.menu_id,
        quantity=payload.quantity,
    )


@router.put("/items/{cart_item_id}", response_model=CartOut)
def set_cart_item_quantity(
    cart_item_id: int,
    payload: CartItemQuantityIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.set_cart_line_quantity(principal, cart_item_id, payload.quantity)


@router.delete("/items/{cart_item_id}", response_model=CartOut)
def remove_cart_item(
    cart_item_id: int,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_cart_line(principal, cart_item_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear_cart(principal)
