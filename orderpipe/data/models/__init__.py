# import all models so they are registered in Base.metadata

from orderpipe.data.models.store import StoreModel, StoreStatus
from orderpipe.data.models.menu import MenuModel, MenuStatus
from orderpipe.data.models.cart import CartModel
from orderpipe.data.models.cart_item import CartItemModel
from orderpipe.data.models.order import OrderModel
from orderpipe.data.models.order_item import OrderItemModel

__all__ = [
    "StoreModel",
    "StoreStatus",
    "MenuModel",
    "MenuStatus",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
