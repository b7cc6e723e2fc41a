"""Domain models for cafe-billing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from cafe_billing.errors import InvalidSnapshot


class BillStatus(str, Enum):
    """Lifecycle states of a bill. COMPLETED is terminal."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class Product:
    """A purchasable menu product."""

    name: str
    price: int


@dataclass(frozen=True)
class LineItem:
    """One named product entry within a bill."""

    name: str
    unit_price: int
    quantity: int = 1

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


def compute_total(items: Iterable[LineItem]) -> int:
    return sum(item.subtotal for item in items)


@dataclass(frozen=True)
class Bill:
    """A customer order record.

    ``total_amount`` is derived from ``items`` on construction and cannot be
    passed in; building a bill with a new item tuple always recomputes it.
    """

    bill_id: str
    table_no: str
    items: tuple[LineItem, ...]
    status: BillStatus
    created_at: datetime
    completed_at: datetime | None = None
    total_amount: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "total_amount", compute_total(self.items))

    @property
    def is_pending(self) -> bool:
        return self.status is BillStatus.PENDING


@dataclass(frozen=True)
class Snapshot:
    """Full-state export/import unit."""

    bills: tuple[Bill, ...]
    menu: dict[str, list[Product]]
    tables: list[str]
    backup_date: datetime | None = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting the ``Z`` suffix browsers write."""
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _positive_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidSnapshot(f"{what} must be a positive integer, got {value!r}")
    return value


def _string(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise InvalidSnapshot(f"{what} must be a string, got {value!r}")
    return value


def line_item_to_dict(item: LineItem) -> dict[str, Any]:
    return {"name": item.name, "price": item.unit_price, "quantity": item.quantity}


def line_item_from_dict(data: Any) -> LineItem:
    if not isinstance(data, dict):
        raise InvalidSnapshot(f"Line item must be an object, got {data!r}")
    return LineItem(
        name=_string(data.get("name"), "Line item name"),
        unit_price=_positive_int(data.get("price"), "Line item price"),
        quantity=_positive_int(data.get("quantity"), "Line item quantity"),
    )


def bill_to_dict(bill: Bill) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": bill.bill_id,
        "tableNo": bill.table_no,
        "items": [line_item_to_dict(item) for item in bill.items],
        "totalAmount": bill.total_amount,
        "status": bill.status.value,
        "createdAt": format_timestamp(bill.created_at),
    }
    if bill.completed_at is not None:
        data["completedAt"] = format_timestamp(bill.completed_at)
    return data


def bill_from_dict(data: Any) -> Bill:
    """Build a bill from its persisted layout; the stored total is recomputed."""
    if not isinstance(data, dict):
        raise InvalidSnapshot(f"Bill must be an object, got {data!r}")

    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        raise InvalidSnapshot(f"Bill {data.get('id')!r} has no item list")

    try:
        status = BillStatus(data.get("status"))
    except ValueError as exc:
        raise InvalidSnapshot(f"Bill {data.get('id')!r} has unknown status {data.get('status')!r}") from exc

    try:
        created_at = parse_timestamp(_string(data.get("createdAt"), "Bill createdAt"))
        raw_completed = data.get("completedAt")
        completed_at = None
        if raw_completed is not None:
            completed_at = parse_timestamp(_string(raw_completed, "Bill completedAt"))
    except ValueError as exc:
        raise InvalidSnapshot(f"Bill {data.get('id')!r} has a malformed timestamp: {exc}") from exc

    if status is BillStatus.COMPLETED and completed_at is None:
        raise InvalidSnapshot(f"Completed bill {data.get('id')!r} has no completedAt")

    items = tuple(line_item_from_dict(item) for item in raw_items)
    names = [item.name for item in items]
    if len(names) != len(set(names)):
        raise InvalidSnapshot(f"Bill {data.get('id')!r} lists the same item more than once")

    return Bill(
        bill_id=_string(data.get("id"), "Bill id"),
        table_no=_string(data.get("tableNo"), "Bill tableNo"),
        items=items,
        status=status,
        created_at=created_at,
        completed_at=completed_at,
    )


def menu_to_dict(menu: dict[str, list[Product]]) -> dict[str, list[dict[str, Any]]]:
    return {
        category: [{"name": product.name, "price": product.price} for product in products]
        for category, products in menu.items()
    }


def menu_from_dict(data: Any) -> dict[str, list[Product]]:
    if not isinstance(data, dict):
        raise InvalidSnapshot(f"Menu must be an object, got {type(data).__name__}")
    menu: dict[str, list[Product]] = {}
    for category, products in data.items():
        if not isinstance(products, list):
            raise InvalidSnapshot(f"Menu category {category!r} must hold a list")
        menu[str(category)] = [
            Product(
                name=_string(product.get("name") if isinstance(product, dict) else None, "Product name"),
                price=_positive_int(product.get("price") if isinstance(product, dict) else None, "Product price"),
            )
            for product in products
        ]
    return menu


def tables_from_list(data: Any) -> list[str]:
    if not isinstance(data, list):
        raise InvalidSnapshot(f"Tables must be a list, got {type(data).__name__}")
    return [_string(value, "Table identifier") for value in data]
