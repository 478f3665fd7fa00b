# orderpipe/domain/order_status.py
import enum

from orderpipe.domain.errors import IllegalTransition


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DELIVERING = "DELIVERING"
    COMPLETED = "COMPLETED"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


_DISPLAY_NAMES = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.ACCEPTED: "Accepted",
    OrderStatus.REJECTED: "Rejected",
    OrderStatus.DELIVERING: "Delivering",
    OrderStatus.COMPLETED: "Completed",
}

# one decision point (accept/reject), otherwise a single forward path
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.REJECTED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.DELIVERING}),
    OrderStatus.DELIVERING: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.REJECTED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return OrderStatus(new) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def ensure_transition(current: OrderStatus, new: OrderStatus) -> None:
    current, new = OrderStatus(current), OrderStatus(new)

    if current == new:
        raise IllegalTransition(f"Order is already {current.value}")

    if current.is_terminal:
        raise IllegalTransition(f"Order in terminal status {current.value} cannot change")

    if not can_transition(current, new):
        raise IllegalTransition(f"Cannot change order status from {current.value} to {new.value}")
