"""
Domain errors.

Services raise these; the HTTP boundary turns every one of them into an
``{"error": message}`` body with the status code carried by the class.
"""
from __future__ import annotations


class WarehouseError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---------- validation ----------
class ValidationFailed(WarehouseError):
    status_code = 400

    @classmethod
    def from_messages(cls, messages) -> "ValidationFailed":
        return cls(", ".join(m for m in messages if m))


# ---------- not found ----------
class NotFound(WarehouseError):
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        label = entity if entity_id is None else f"{entity} {entity_id}"
        super().__init__(f"{label} not found")
        self.entity = entity
        self.entity_id = entity_id


# ---------- uniqueness ----------
class Conflict(WarehouseError):
    status_code = 409


class DuplicateSerialNumber(Conflict):
    def __init__(self, serial_numbers=None):
        super().__init__("One or more serial numbers already exist")
        self.serial_numbers = list(serial_numbers or [])


# ---------- business rules ----------
class DomainRuleViolation(WarehouseError):
    status_code = 400


class InsufficientStock(DomainRuleViolation):
    def __init__(self, available: int, requested: int):
        super().__init__(f"Insufficient stock (available={available}, requested={requested})")
        self.available = available
        self.requested = requested


class QuantityExceeded(DomainRuleViolation):
    pass


class NothingToUnpick(DomainRuleViolation):
    def __init__(self, order_item_id: int):
        super().__init__(f"Order item {order_item_id} has nothing picked")


class SerialNumberRequired(DomainRuleViolation):
    pass


class SerialNumberUnavailable(DomainRuleViolation):
    pass


class OrderNotCancellable(DomainRuleViolation):
    def __init__(self, order_number: str):
        super().__init__(
            f"Order {order_number} cannot be cancelled: picking or procurement has already started"
        )


class OrderClosed(DomainRuleViolation):
    def __init__(self, order_number: str, status):
        label = getattr(status, "value", status)
        super().__init__(f"Order {order_number} is {label}")


class ItemAlreadyResolved(DomainRuleViolation):
    def __init__(self, order_item_id: int):
        super().__init__(f"Order item {order_item_id} already has an article assigned")


class InventoryNotActive(DomainRuleViolation):
    def __init__(self, inventory_id: int):
        super().__init__(f"Inventory {inventory_id} is no longer in progress")
