"""Order status state machine."""

from __future__ import annotations

import logging

from storefront.models.order import ORDER_STATUSES
from storefront.services.errors import InvalidTransitionError, ValidationError

logger = logging.getLogger(__name__)

PENDING = "Pending"
PROCESSING = "Processing"
SHIPPED = "Shipped"
DELIVERED = "Delivered"
CANCELLED = "Cancelled"
REFUNDED = "Refunded"

INITIAL_STATUS: str = PENDING

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {PROCESSING, CANCELLED},
    PROCESSING: {SHIPPED, CANCELLED},
    SHIPPED: {DELIVERED, CANCELLED},
    DELIVERED: {REFUNDED},
    CANCELLED: set(),
    REFUNDED: set(),
}

_STATUS_BY_NAME: dict[str, str] = {status.lower(): status for status in ORDER_STATUSES}


def parse_status(value: str) -> str:
    """Resolve a case-insensitive status name to its canonical spelling."""
    status = _STATUS_BY_NAME.get(value.strip().lower())
    if status is None:
        raise ValidationError.single(
            "status",
            f"Unknown order status '{value}'. Expected one of: {', '.join(ORDER_STATUSES)}",
        )
    return status


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def is_terminal(status: str) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


def is_cancellable(status: str) -> bool:
    return can_transition(status, CANCELLED)


def ensure_transition(order_id: int, current: str, new: str) -> None:
    """Raise InvalidTransitionError unless current -> new is allowed."""
    if not can_transition(current, new):
        logger.warning("Rejected status change for order %s: %s -> %s", order_id, current, new, extra={"order_id": order_id})
        raise InvalidTransitionError(order_id, current, new)
