# orderpipe/api/routers/owner_orders.py
from fastapi import APIRouter, Depends, Query

from orderpipe.api.deps import get_order_service, get_order_status_service, get_principal
from orderpipe.domain.order_status import OrderStatus
from orderpipe.domain.schemas import OrderOut, OrderPageOut, OrderStatusUpdateIn
from orderpipe.services.access_guard import Principal
from orderpipe.services.order_service import OrderService
from orderpipe.services.order_status_service import OrderStatusService

router = APIRouter(prefix="/owner", tags=["owner-orders"])


@router.get("/stores/{store_id}/orders", response_model=OrderPageOut)
def list_store_orders(
    store_id: int,
    status: OrderStatus | None = Query(None),
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1),
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(principal, status=status, page=page, size=size, store_id=store_id)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_store_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return svc.read_order(principal, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def change_order_status(
    order_id: int,
    payload: OrderStatusUpdateIn,
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    return svc.change_order_status(principal, order_id, payload.new_status)
