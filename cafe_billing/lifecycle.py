"""Bill lifecycle: creation, item edits, completion and cancellation."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Iterable

from cafe_billing.catalog import parse_price
from cafe_billing.constant import BILL_ID_PREFIX
from cafe_billing.errors import (
    BillNotFound,
    BillNotPending,
    EmptyBill,
    EmptyName,
    InvalidQuantity,
    ItemIndexOutOfRange,
    NoTableSelected,
)
from cafe_billing.models import Bill, BillStatus, LineItem, compute_total, utc_now
from cafe_billing.repository import BillRepository

logger = logging.getLogger(__name__)

_QUANTITY = re.compile(r"[0-9]+")


def parse_quantity(raw: Any) -> int:
    """Parse a typed quantity strictly; zero is allowed and means remove."""
    if isinstance(raw, bool):
        raise InvalidQuantity(f"Quantity must be a whole number, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _QUANTITY.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        raise InvalidQuantity(f"Quantity must be a whole number, got {raw!r}")
    if value < 0:
        raise InvalidQuantity("Quantity cannot be negative")
    return value


def _whole_number(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"Quantity must be a whole number, got {value!r}")
    return value


def _item_name(name: str) -> str:
    if not (name or "").strip():
        raise EmptyName("Item name cannot be empty")
    return name


def merge_item(items: list[LineItem], name: str, unit_price: int, quantity: int = 1) -> list[LineItem]:
    """Return items with ``quantity`` more of ``name``, merged into an existing row if present."""
    merged = list(items)
    for idx, item in enumerate(merged):
        if item.name == name:
            merged[idx] = replace(item, quantity=item.quantity + quantity)
            return merged
    merged.append(LineItem(name=name, unit_price=unit_price, quantity=quantity))
    return merged


def _adjust_quantity(items: list[LineItem], index: int, quantity: int) -> list[LineItem]:
    adjusted = list(items)
    if quantity <= 0:
        del adjusted[index]
    else:
        adjusted[index] = replace(adjusted[index], quantity=quantity)
    return adjusted


class BillDraft:
    """Items of a bill being assembled before it is saved."""

    def __init__(self) -> None:
        self._items: list[LineItem] = []

    @property
    def items(self) -> list[LineItem]:
        return list(self._items)

    @property
    def total(self) -> int:
        return compute_total(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def add(self, name: str, price: Any) -> None:
        self._items = merge_item(self._items, _item_name(name), parse_price(price))

    def change_quantity(self, index: int, delta: int) -> None:
        _whole_number(delta)
        if not (0 <= index < len(self._items)):
            return
        self._items = _adjust_quantity(self._items, index, self._items[index].quantity + delta)

    def remove(self, index: int) -> None:
        if 0 <= index < len(self._items):
            del self._items[index]

    def clear(self) -> None:
        self._items = []


class BillLifecycleEngine:
    """Sole writer of bill state.

    Every mutation loads the whole collection, builds a new version of the
    target bill and saves the whole collection back. Validation happens
    before the save, so a failed call never writes anything.
    """

    def __init__(self, repository: BillRepository, clock: Callable[[], datetime] = utc_now) -> None:
        self.repository = repository
        self.clock = clock
        self._last_id_millis = 0

    def _next_bill_id(self, bills: list[Bill], now: datetime) -> str:
        taken = {bill.bill_id for bill in bills}
        millis = max(int(now.timestamp() * 1000), self._last_id_millis + 1)
        while f"{BILL_ID_PREFIX}{millis}" in taken:
            millis += 1
        self._last_id_millis = millis
        return f"{BILL_ID_PREFIX}{millis}"

    @staticmethod
    def _locate(bills: list[Bill], bill_id: str) -> int:
        for idx, bill in enumerate(bills):
            if bill.bill_id == bill_id:
                return idx
        raise BillNotFound(bill_id)

    def _locate_pending(self, bills: list[Bill], bill_id: str) -> int:
        idx = self._locate(bills, bill_id)
        if not bills[idx].is_pending:
            raise BillNotPending(bill_id)
        return idx

    @staticmethod
    def _check_index(bill: Bill, item_index: int) -> None:
        if not (0 <= item_index < len(bill.items)):
            raise ItemIndexOutOfRange(bill.bill_id, item_index)

    def _store_items(self, bills: list[Bill], idx: int, items: list[LineItem]) -> Bill:
        updated = replace(bills[idx], items=tuple(items))
        bills[idx] = updated
        self.repository.save_all(bills)
        return updated

    def get_bill(self, bill_id: str) -> Bill:
        bill = self.repository.find_by_id(bill_id)
        if bill is None:
            raise BillNotFound(bill_id)
        return bill

    def create_bill(self, table_no: str, items: Iterable[LineItem]) -> Bill:
        table = (table_no or "").strip()
        if not table:
            raise NoTableSelected("Please select a table number before saving")

        merged: list[LineItem] = []
        for item in items:
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
                raise InvalidQuantity(f"Quantity of {item.name!r} must be at least 1")
            merged = merge_item(merged, _item_name(item.name), parse_price(item.unit_price), item.quantity)
        if not merged:
            raise EmptyBill("Please add at least one item to the bill before saving")

        bills = self.repository.load_all()
        now = self.clock()
        bill = Bill(
            bill_id=self._next_bill_id(bills, now),
            table_no=table,
            items=tuple(merged),
            status=BillStatus.PENDING,
            created_at=now,
        )
        bills.append(bill)
        self.repository.save_all(bills)
        logger.info("bill_created bill_id=%s table=%s total=%d", bill.bill_id, table, bill.total_amount)
        return bill

    def add_item(self, bill_id: str, name: str, unit_price: Any) -> Bill:
        bills = self.repository.load_all()
        idx = self._locate_pending(bills, bill_id)
        items = merge_item(list(bills[idx].items), _item_name(name), parse_price(unit_price))
        return self._store_items(bills, idx, items)

    def change_quantity(self, bill_id: str, item_index: int, delta: int) -> Bill:
        _whole_number(delta)
        bills = self.repository.load_all()
        idx = self._locate_pending(bills, bill_id)
        bill = bills[idx]
        self._check_index(bill, item_index)
        quantity = bill.items[item_index].quantity + delta
        return self._store_items(bills, idx, _adjust_quantity(list(bill.items), item_index, quantity))

    def set_quantity(self, bill_id: str, item_index: int, new_quantity: int) -> Bill:
        _whole_number(new_quantity)
        bills = self.repository.load_all()
        idx = self._locate_pending(bills, bill_id)
        bill = bills[idx]
        self._check_index(bill, item_index)
        return self._store_items(bills, idx, _adjust_quantity(list(bill.items), item_index, new_quantity))

    def remove_item(self, bill_id: str, item_index: int) -> Bill:
        bills = self.repository.load_all()
        idx = self._locate_pending(bills, bill_id)
        bill = bills[idx]
        self._check_index(bill, item_index)
        items = list(bill.items)
        del items[item_index]
        return self._store_items(bills, idx, items)

    def complete_bill(self, bill_id: str) -> Bill:
        """Mark a bill completed. Completing an already completed bill changes nothing."""
        bills = self.repository.load_all()
        idx = self._locate(bills, bill_id)
        bill = bills[idx]
        if not bill.is_pending:
            return bill

        completed = replace(bill, status=BillStatus.COMPLETED, completed_at=self.clock())
        bills[idx] = completed
        self.repository.save_all(bills)
        logger.info("bill_completed bill_id=%s total=%d", bill_id, completed.total_amount)
        return completed

    def cancel_bill(self, bill_id: str) -> Bill:
        """Remove a bill from the collection whatever its status; returns the removed record."""
        bills = self.repository.load_all()
        idx = self._locate(bills, bill_id)
        removed = bills.pop(idx)
        self.repository.save_all(bills)
        logger.info("bill_cancelled bill_id=%s status=%s", bill_id, removed.status.value)
        return removed
