"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from cafe_billing.catalog import CatalogStore
from cafe_billing.errors import BillingError
from cafe_billing.lifecycle import BillLifecycleEngine
from cafe_billing.modals import DraftBillModal, MenuPickerModal, QuantityModal, TablePickerModal
from cafe_billing.models import Bill, BillStatus, Product
from cafe_billing.persistence import RecordStore
from cafe_billing.rendering import format_bill_detail, format_bill_label
from cafe_billing.repository import BillRepository

logger = logging.getLogger(__name__)


class BillingApp(App):
    """A Textual app for tracking cafe bills from order to payment."""

    TITLE = "Cafe Billing"
    SUB_TITLE = "Pending / Completed"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #bills-pane {
        width: 2fr;
        border: round $primary;
        padding: 1;
    }

    #detail-pane {
        width: 3fr;
        border: round $secondary;
        padding: 1;
    }

    #status-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #bills-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #bill-detail {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("tab", "toggle_view", "Pending/Completed"),
        ("up", "move_item(-1)", "Previous item"),
        ("down", "move_item(1)", "Next item"),
        ("plus", "change_quantity(1)", "Quantity +1"),
        ("minus", "change_quantity(-1)", "Quantity -1"),
        ("escape", "stop_search", "Leave search"),
        ("backspace", "backspace_query", "Delete query char"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: RecordStore | None = None) -> None:
        super().__init__()
        self.store = store or RecordStore()
        self.catalog = CatalogStore(self.store)
        self.repository = BillRepository(self.store)
        self.engine = BillLifecycleEngine(self.repository)
        self.status_view = BillStatus.PENDING
        self.searching = False
        self.search_term = ""
        self.selected_bill_id: str | None = None
        self.item_cursor = 0
        self.system_status = ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="status-bar")
        with Horizontal(id="main-layout"):
            with Vertical(id="bills-pane"):
                yield Static("Bills", id="bills-title", classes="pane-title")
                yield Static(id="bills-list")
            with Vertical(id="detail-pane"):
                yield Static("Bill Detail", classes="pane-title")
                yield Static(id="bill-detail")

    def on_mount(self) -> None:
        self.store.bootstrap_schema()
        self._refresh_all()

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if not event.is_printable or not event.character:
            return

        if self.searching:
            if event.character in {"+", "-"}:
                return
            self.search_term += event.character
            self._refresh_all()
            event.stop()
            return

        handlers = {
            "j": lambda: self._move_bill(1),
            "k": lambda: self._move_bill(-1),
            "n": self._start_new_bill,
            "a": self._start_add_item,
            "e": self._start_set_quantity,
            "r": self._remove_item,
            "c": self._complete_selected,
            "x": self._cancel_selected,
            "/": self._start_search,
        }
        handler = handlers.get(event.character.lower())
        if handler is None:
            return
        handler()
        event.stop()

    def action_toggle_view(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        self.status_view = BillStatus.COMPLETED if self.status_view is BillStatus.PENDING else BillStatus.PENDING
        self.selected_bill_id = None
        self.item_cursor = 0
        self._refresh_all()

    def action_move_item(self, delta: int) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        bill = self._selected_bill()
        if bill is None or not bill.items:
            return
        self.item_cursor = (self.item_cursor + delta) % len(bill.items)
        self._refresh_detail()

    def action_change_quantity(self, delta: int) -> None:
        if isinstance(self.screen, ModalScreen) or self.searching:
            return
        bill = self._selected_bill()
        if bill is None:
            return
        self._run(lambda: self.engine.change_quantity(bill.bill_id, self.item_cursor, delta))

    def action_stop_search(self) -> None:
        if not self.searching:
            return
        self.searching = False
        self.search_term = ""
        self._refresh_all()

    def action_backspace_query(self) -> None:
        if not self.searching or not self.search_term:
            return
        self.search_term = self.search_term[:-1]
        self._refresh_all()

    def _run(self, operation, success: str = "") -> None:
        """Call into the engine and report a billing failure in the status bar."""
        try:
            operation()
        except BillingError as exc:
            self.system_status = str(exc)
            logger.info("action_failed error=%r", exc)
        else:
            self.system_status = success
        self._refresh_all()

    def _visible_bills(self) -> list[Bill]:
        bills = self.repository.filter_by_status(self.status_view)
        if self.searching:
            bills = self.repository.filter_by_search_term(self.search_term, bills)
        return bills

    def _selected_bill(self) -> Bill | None:
        if self.selected_bill_id is None:
            return None
        for bill in self._visible_bills():
            if bill.bill_id == self.selected_bill_id:
                return bill
        return None

    def _move_bill(self, delta: int) -> None:
        bills = self._visible_bills()
        if not bills:
            return
        ids = [bill.bill_id for bill in bills]
        if self.selected_bill_id not in ids:
            idx = 0 if delta > 0 else len(ids) - 1
        else:
            idx = (ids.index(self.selected_bill_id) + delta) % len(ids)
        self.selected_bill_id = ids[idx]
        self.item_cursor = 0
        self._refresh_all()

    def _start_search(self) -> None:
        self.searching = True
        self.search_term = ""
        self._refresh_all()

    def _start_new_bill(self) -> None:
        def on_table(table: object) -> None:
            if table is None:
                return
            self.push_screen(
                DraftBillModal(str(table), self.catalog.get_menu()),
                lambda items: on_draft(str(table), items),
            )

        def on_draft(table: str, items: object) -> None:
            if items is None:
                self.system_status = "New bill discarded"
                self._refresh_status()
                return

            def create() -> None:
                bill = self.engine.create_bill(table, items)
                self.status_view = BillStatus.PENDING
                self.selected_bill_id = bill.bill_id
                self.item_cursor = 0

            self._run(create, success=f"Bill saved for table {table}")

        self.push_screen(TablePickerModal(self.catalog.get_tables()), on_table)

    def _start_add_item(self) -> None:
        bill = self._selected_bill()
        if bill is None:
            return
        if not bill.is_pending:
            self.system_status = "Cannot add items to a completed bill"
            self._refresh_status()
            return

        def on_product(product: object) -> None:
            if isinstance(product, Product):
                self._run(lambda: self.engine.add_item(bill.bill_id, product.name, product.price))

        self.push_screen(MenuPickerModal(self.catalog.get_menu()), on_product)

    def _start_set_quantity(self) -> None:
        bill = self._selected_bill()
        if bill is None or not bill.is_pending or not (0 <= self.item_cursor < len(bill.items)):
            return
        item = bill.items[self.item_cursor]
        item_index = self.item_cursor

        def on_quantity(quantity: int | None) -> None:
            if quantity is not None:
                self._run(lambda: self.engine.set_quantity(bill.bill_id, item_index, quantity))

        self.push_screen(QuantityModal(item.name, item.quantity), on_quantity)

    def _remove_item(self) -> None:
        bill = self._selected_bill()
        if bill is None:
            return
        self._run(lambda: self.engine.remove_item(bill.bill_id, self.item_cursor))

    def _complete_selected(self) -> None:
        bill = self._selected_bill()
        if bill is None or not bill.is_pending:
            return
        self._run(lambda: self.engine.complete_bill(bill.bill_id), success=f"Completed {bill.bill_id}")
        self.selected_bill_id = None
        self._refresh_all()

    def _cancel_selected(self) -> None:
        bill = self._selected_bill()
        if bill is None:
            return
        if not bill.is_pending:
            self.system_status = "Only pending bills can be cancelled"
            self._refresh_status()
            return
        self._run(lambda: self.engine.cancel_bill(bill.bill_id), success=f"Cancelled {bill.bill_id}")
        self.selected_bill_id = None
        self._refresh_all()

    def _refresh_all(self) -> None:
        self._refresh_status()
        self._refresh_bills()
        self._refresh_detail()

    def _refresh_status(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        if self.searching:
            bar.update(Text(f"Search: {self.search_term}|", style="bold"))
            return
        status = self.system_status or "Ready"
        bar.update(f"N new, A add, E qty, R remove, C complete, X cancel, / search, Tab switch.\n{status}")

    def _refresh_bills(self) -> None:
        try:
            title = self.query_one("#bills-title", Static)
            bills_widget = self.query_one("#bills-list", Static)
        except NoMatches:
            return
        title.update(f"{self.status_view.value.title()} Bills")

        bills = self._visible_bills()
        if not bills:
            bills_widget.update("No matching bills." if self.search_term else f"No {self.status_view.value.lower()} bills.")
            return

        lines = Text()
        for idx, bill in enumerate(bills):
            if idx > 0:
                lines.append("\n")
            pointer = "➤ " if bill.bill_id == self.selected_bill_id else "  "
            lines.append(pointer)
            lines.append_text(format_bill_label(bill))
        bills_widget.update(lines)

    def _refresh_detail(self) -> None:
        try:
            detail = self.query_one("#bill-detail", Static)
        except NoMatches:
            return
        bill = self._selected_bill()
        if bill is None:
            detail.update("(select a bill with J/K)")
            return
        if bill.items and self.item_cursor >= len(bill.items):
            self.item_cursor = len(bill.items) - 1
        detail.update(format_bill_detail(bill, cursor=self.item_cursor))
