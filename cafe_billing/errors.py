"""Typed failures raised by the billing core."""

from __future__ import annotations


class BillingError(Exception):
    """Base class for every recoverable billing failure."""


class ValidationError(BillingError):
    """Blank or invalid user input."""


class EmptyName(ValidationError):
    pass


class InvalidPrice(ValidationError):
    pass


class NoTableSelected(ValidationError):
    pass


class EmptyBill(ValidationError):
    pass


class InvalidQuantity(ValidationError):
    pass


class InvalidDays(ValidationError):
    pass


class NotFoundError(BillingError):
    """Unknown bill id, category key, product or item index."""


class BillNotFound(NotFoundError):
    def __init__(self, bill_id: str) -> None:
        super().__init__(f"Bill {bill_id!r} not found")
        self.bill_id = bill_id


class UnknownCategory(NotFoundError):
    def __init__(self, category_key: str) -> None:
        super().__init__(f"Unknown category {category_key!r}")
        self.category_key = category_key


class ProductNotFound(NotFoundError):
    pass


class ItemIndexOutOfRange(NotFoundError):
    def __init__(self, bill_id: str, item_index: int) -> None:
        super().__init__(f"Bill {bill_id!r} has no item at index {item_index}")
        self.bill_id = bill_id
        self.item_index = item_index


class IllegalStateTransition(BillingError):
    """A mutation was attempted on a bill whose status forbids it."""


class BillNotPending(IllegalStateTransition):
    def __init__(self, bill_id: str) -> None:
        super().__init__(f"Bill {bill_id!r} is completed and cannot be changed")
        self.bill_id = bill_id


class DuplicateEntity(BillingError):
    """A category or table with the same identity already exists."""


class DuplicateCategory(DuplicateEntity):
    pass


class DuplicateTable(DuplicateEntity):
    pass


class InvalidSnapshot(BillingError):
    """Malformed import payload or persisted record."""


class CorruptRecord(InvalidSnapshot):
    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Stored record {key!r} is unreadable: {reason}")
        self.key = key
