# orderpipe/api/routers/orders.py
from fastapi import APIRouter, Depends, Query

from orderpipe.api.deps import get_order_service, get_principal
from orderpipe.domain.order_status import OrderStatus
from orderpipe.domain.schemas import OrderCreateIn, OrderOut, OrderPageOut
from orderpipe.services.access_guard import Principal
from orderpipe.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreateIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Turns the caller's cart into an order and empties the cart.
    Payment is virtual.
    """
    return svc.commit_order(principal, payload)


@router.get("", response_model=OrderPageOut)
def list_my_orders(
    status: OrderStatus | None = Query(None),
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1),
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(principal, status=status, page=page, size=size)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return svc.read_order(principal, order_id)
