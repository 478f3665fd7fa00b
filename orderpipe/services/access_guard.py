# orderpipe/services/access_guard.py
"""
Central capability checks for the cart and order pipeline.

Every service call receives the acting ``Principal`` explicitly and asks
``authorize`` before reading or mutating a resource. Ownership is passed in
as the user id that owns the resource (cart/order customer, or the owner of
the order's store).
"""
import enum
from dataclasses import dataclass

from orderpipe.domain.errors import Forbidden


class Role(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    OWNER = "OWNER"


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: Role

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER


class Capability(str, enum.Enum):
    MANAGE_CART = "MANAGE_CART"
    PLACE_ORDER = "PLACE_ORDER"
    READ_ORDER = "READ_ORDER"
    LIST_ORDERS = "LIST_ORDERS"
    CHANGE_ORDER_STATUS = "CHANGE_ORDER_STATUS"


CAPABILITY_ROLES = {
    Capability.MANAGE_CART: frozenset({Role.CUSTOMER}),
    Capability.PLACE_ORDER: frozenset({Role.CUSTOMER}),
    Capability.READ_ORDER: frozenset({Role.CUSTOMER, Role.OWNER}),
    Capability.LIST_ORDERS: frozenset({Role.CUSTOMER, Role.OWNER}),
    Capability.CHANGE_ORDER_STATUS: frozenset({Role.OWNER}),
}


def authorize(principal: Principal, capability: Capability, owner_id: int | None = None) -> None:
    """Raise Forbidden unless the principal holds the capability (and owns the resource)."""
    if principal.role not in CAPABILITY_ROLES[capability]:
        raise Forbidden(f"Role {principal.role.value} may not {capability.value.lower()}")
    if owner_id is not None and owner_id != principal.user_id:
        raise Forbidden("Resource does not belong to the caller")


def order_owner_id(principal: Principal, order, store) -> int:
    """
    The user id that must match the caller for an order: the customer who
    placed it, or the owner of the store it was placed at.
    """
    if principal.is_owner:
        if store is None:
            raise Forbidden("Order store cannot be resolved")
        return store.owner_id
    return order.user_id
