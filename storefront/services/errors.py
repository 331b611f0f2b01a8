"""Domain errors raised by catalog and order services.

Every error carries a machine-readable ``kind`` plus the offending field or
identifier so callers can render a specific message. The API layer maps each
kind to an HTTP status in ``storefront.main``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Violation:
    """One failed precondition inside a validation error."""

    field: str
    message: str
    identifier: int | str | None = None


class OrderProcessingError(Exception):
    """Base class for all domain errors."""

    kind: str = "error"

    def __init__(self, message: str, *, field: str | None = None, identifier: int | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.identifier = identifier

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.identifier is not None:
            payload["identifier"] = self.identifier
        return payload


class ValidationError(OrderProcessingError):
    """Caller-supplied data violates one or more preconditions."""

    kind = "validation_error"

    def __init__(self, violations: list[Violation]) -> None:
        if not violations:
            raise ValueError("ValidationError requires at least one violation")
        first = violations[0]
        super().__init__(first.message, field=first.field, identifier=first.identifier)
        self.violations = list(violations)

    @classmethod
    def single(cls, field: str, message: str, identifier: int | str | None = None) -> ValidationError:
        return cls([Violation(field=field, message=message, identifier=identifier)])

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["violations"] = [asdict(violation) for violation in self.violations]
        return payload


class NotFoundError(OrderProcessingError):
    """Referenced order, customer, product or category does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, identifier: int | str) -> None:
        super().__init__(f"{entity} with ID {identifier} not found", field=entity.lower(), identifier=identifier)
        self.entity = entity


class DuplicateError(OrderProcessingError):
    """A unique business key is already taken."""

    kind = "duplicate"


class InvalidTransitionError(OrderProcessingError):
    """Requested status change is not allowed by the order state machine."""

    kind = "invalid_transition"

    def __init__(self, order_id: int, current_status: str, requested_status: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Order {order_id} cannot move from {current_status} to {requested_status}",
            field="status",
            identifier=order_id,
        )
        self.current_status = current_status
        self.requested_status = requested_status

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["current_status"] = self.current_status
        payload["requested_status"] = self.requested_status
        return payload


class NotCancellableError(InvalidTransitionError):
    """Order is already delivered, cancelled or refunded."""

    kind = "not_cancellable"

    def __init__(self, order_id: int, current_status: str) -> None:
        super().__init__(
            order_id,
            current_status,
            "Cancelled",
            message=f"Order {order_id} cannot be cancelled (status is {current_status})",
        )


class ConcurrencyConflictError(OrderProcessingError):
    """Another request changed the same order first."""

    kind = "conflict"

    def __init__(self, order_id: int) -> None:
        super().__init__(
            f"Order {order_id} was modified concurrently; reload and try again",
            field="order",
            identifier=order_id,
        )


class PersistenceError(OrderProcessingError):
    """Storage transaction failed and was rolled back."""

    kind = "persistence_error"
