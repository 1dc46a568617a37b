"""
Allowed order status transitions.

pending -> confirmed -> delivered, cancelled reachable from any non-terminal
state. Pure rules, no database access.
"""
from snackshop.exceptions import InvalidTransition

from .models import Order

S = Order.Status

TERMINAL_STATES = {S.DELIVERED, S.CANCELLED}

ALLOWED_TRANSITIONS = {
    S.PENDING: {S.CONFIRMED, S.CANCELLED},
    S.CONFIRMED: {S.DELIVERED, S.CANCELLED},
}


def can_transition(from_status, to_status):
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(order, target_status):
    """Raise InvalidTransition unless order may move to target_status."""
    if not can_transition(order.status, target_status):
        raise InvalidTransition(f"Order {order.order_number} cannot transition from '{order.status}' to '{target_status}'")
