"""Whole-collection persistence of bill records."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from cafe_billing.constant import BILLS_KEY
from cafe_billing.errors import InvalidDays, InvalidSnapshot
from cafe_billing.models import Bill, BillStatus, bill_from_dict, bill_to_dict
from cafe_billing.persistence import RecordStore

logger = logging.getLogger(__name__)


def bills_from_list(data: object) -> list[Bill]:
    if not isinstance(data, list):
        raise InvalidSnapshot(f"Bills must be a list, got {type(data).__name__}")
    bills = [bill_from_dict(entry) for entry in data]
    seen: set[str] = set()
    for bill in bills:
        if bill.bill_id in seen:
            raise InvalidSnapshot(f"Bill id {bill.bill_id!r} appears more than once")
        seen.add(bill.bill_id)
    return bills


class BillRepository:
    """The full ordered collection of bills, read and written as one unit.

    There is no per-bill update primitive: callers load everything, change a
    copy and save everything back. :class:`~cafe_billing.lifecycle.BillLifecycleEngine`
    is the only writer of individual bill state.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def load_all(self) -> list[Bill]:
        saved = self.store.read(BILLS_KEY)
        if saved is None:
            return []
        return bills_from_list(saved)

    def save_all(self, bills: Iterable[Bill]) -> None:
        self.store.write(BILLS_KEY, [bill_to_dict(bill) for bill in bills])

    def find_by_id(self, bill_id: str) -> Bill | None:
        for bill in self.load_all():
            if bill.bill_id == bill_id:
                return bill
        return None

    def filter_by_status(self, status: BillStatus, bills: Iterable[Bill] | None = None) -> list[Bill]:
        source = self.load_all() if bills is None else bills
        return [bill for bill in source if bill.status is BillStatus(status)]

    def filter_by_search_term(self, term: str | None, bills: Iterable[Bill] | None = None) -> list[Bill]:
        """Case-insensitive substring match against bill id and table number."""
        source = list(self.load_all() if bills is None else bills)
        needle = (term or "").strip().lower()
        if not needle:
            return source
        return [bill for bill in source if needle in bill.bill_id.lower() or needle in bill.table_no.lower()]

    def purge_older_than(self, days: int, now: datetime) -> int:
        """Delete bills created more than ``days`` days before ``now``."""
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidDays(f"Days must be a whole number of at least 1, got {days!r}")

        cutoff = now - timedelta(days=days)
        bills = self.load_all()
        kept = [bill for bill in bills if bill.created_at >= cutoff]
        removed = len(bills) - len(kept)
        self.save_all(kept)
        logger.info("bills_purged days=%d removed=%d", days, removed)
        return removed

    def delete_all(self) -> None:
        """Drop every bill; menu and tables are kept."""
        self.store.delete(BILLS_KEY)
        logger.info("bills_reset")
