"""Picker, draft bill and quantity entry modal screens."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe_billing.catalog import display_name
from cafe_billing.errors import BillingError, InvalidQuantity
from cafe_billing.lifecycle import BillDraft, parse_quantity
from cafe_billing.models import Product
from cafe_billing.rendering import format_item_row

_MODAL_CSS = """
{name} {{
    align: center middle;
    background: $background 60%;
}}

.picker-dialog {{
    width: 56;
    height: auto;
    max-height: 80%;
    border: round $secondary;
    background: $panel;
    padding: 1 2;
}}

.picker-title {{
    text-style: bold;
    margin-bottom: 1;
    color: white;
}}

.picker-error {{
    color: #ffb3b3;
}}

.picker-help {{
    margin-top: 1;
    color: #dddddd;
}}
"""


class _ListPickerModal(ModalScreen[object]):
    """Centered list with a cursor; Enter returns the highlighted value."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("up", "move_cursor(-1)", "Previous"),
        ("enter", "choose", "Choose"),
    ]

    def __init__(self, title: str, rows: list[tuple[str, object]]) -> None:
        super().__init__()
        self.title_text = title
        self.rows = rows
        self.cursor_index = 0

    def compose(self) -> ComposeResult:
        with Container(classes="picker-dialog"):
            yield Static(self.title_text, classes="picker-title")
            yield Static(id="picker-body")
            yield Static("J/K/↑/↓ move, Enter choose, Esc/q/Ctrl+C cancel", classes="picker-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if not self.rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.rows)
        self._refresh_content()

    def action_choose(self) -> None:
        if not self.rows:
            self.dismiss(None)
            return
        self.dismiss(self.rows[self.cursor_index][1])

    def _refresh_content(self) -> None:
        body = self.query_one("#picker-body", Static)
        if not self.rows:
            body.update("(nothing to choose)")
            return
        content = Text(style="white")
        for idx, (label, _) in enumerate(self.rows):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            content.append(f"{pointer}{label}", style="bold white" if idx == self.cursor_index else "white")
        body.update(content)


class TablePickerModal(_ListPickerModal):
    """Choose the table a new bill belongs to."""

    CSS = _MODAL_CSS.format(name="TablePickerModal")

    def __init__(self, tables: list[str]) -> None:
        super().__init__("Select Table", [(f"Table {table}", table) for table in tables])


class MenuPickerModal(_ListPickerModal):
    """Choose a product from the whole menu, grouped by category."""

    CSS = _MODAL_CSS.format(name="MenuPickerModal")

    def __init__(self, menu: dict[str, list[Product]]) -> None:
        rows = [
            (f"{display_name(key)} · {product.name}  {product.price}", product)
            for key, products in menu.items()
            for product in products
        ]
        super().__init__("Add Item", rows)


class QuantityModal(ModalScreen[int | None]):
    """Prompt for an exact item quantity; 0 removes the item."""

    CSS = _MODAL_CSS.format(name="QuantityModal")

    def __init__(self, item_name: str, current: int) -> None:
        super().__init__()
        self.item_name = item_name
        self.value = str(current)
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(classes="picker-dialog"):
            yield Static(f"Quantity: {self.item_name}", classes="picker-title")
            yield Static(id="quantity-value")
            yield Static(id="quantity-error", classes="picker-error")
            yield Static("Digits only. Enter confirm. Backspace delete. Esc cancel.", classes="picker-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "q", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            self.value = self.value[:-1]
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.value) < 4:
                self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        try:
            quantity = parse_quantity(self.value)
        except InvalidQuantity as exc:
            self.error = str(exc)
            self._refresh_content()
            return
        self.dismiss(quantity)

    def _refresh_content(self) -> None:
        self.query_one("#quantity-value", Static).update(self.value)
        self.query_one("#quantity-error", Static).update(self.error)


class DraftBillModal(ModalScreen[object]):
    """Assemble a new bill for one table; Enter returns the draft's items."""

    CSS = _MODAL_CSS.format(name="DraftBillModal")

    def __init__(self, table_no: str, menu: dict[str, list[Product]]) -> None:
        super().__init__()
        self.table_no = table_no
        self.menu = menu
        self.draft = BillDraft()
        self.cursor_index = 0
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(classes="picker-dialog"):
            yield Static(f"New Bill: Table {self.table_no}", classes="picker-title")
            yield Static(id="draft-body")
            yield Static(id="draft-error", classes="picker-error")
            yield Static(
                "A add, +/- qty, R remove, X clear, ↑/↓ move, Enter save, Esc discard",
                classes="picker-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
        elif event.key == "enter":
            self.dismiss(self.draft.items)
        elif event.key in {"up", "k"}:
            self._move(-1)
        elif event.key in {"down", "j"}:
            self._move(1)
        elif event.character in {"+", "-"}:
            self._edit(lambda: self.draft.change_quantity(self.cursor_index, 1 if event.character == "+" else -1))
        elif event.character in {"a", "A"}:
            self.app.push_screen(MenuPickerModal(self.menu), self._on_product)
        elif event.character in {"r", "R"}:
            self._edit(lambda: self.draft.remove(self.cursor_index))
        elif event.character in {"x", "X"}:
            self._edit(self.draft.clear)
        else:
            return
        event.stop()

    def _on_product(self, product: object) -> None:
        if isinstance(product, Product):
            self._edit(lambda: self.draft.add(product.name, product.price))

    def _move(self, delta: int) -> None:
        if self.draft.is_empty:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.draft.items)
        self._refresh_content()

    def _edit(self, change) -> None:
        try:
            change()
        except BillingError as exc:
            self.error = str(exc)
        else:
            self.error = ""
        self._refresh_content()

    def _refresh_content(self) -> None:
        items = self.draft.items
        if self.cursor_index >= len(items):
            self.cursor_index = max(len(items) - 1, 0)
        body = Text(style="white")
        if not items:
            body.append("(press A to add items)")
        for idx, item in enumerate(items):
            if idx > 0:
                body.append("\n")
            body.append("➤ " if idx == self.cursor_index else "  ")
            body.append_text(format_item_row(item))
        body.append(f"\n\nTotal: {self.draft.total}", style="bold white")
        self.query_one("#draft-body", Static).update(body)
        self.query_one("#draft-error", Static).update(self.error)
