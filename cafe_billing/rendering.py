"""Rendering helpers for bills and line items."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text

from cafe_billing.models import Bill, BillStatus, LineItem

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def status_badge_style(status: BillStatus) -> str:
    """Return a consistent badge style for bill status tags."""
    if status is BillStatus.PENDING:
        return "bold #0b1f0f on #f2c14e"
    return "bold #ffffff on #2f6db5"


def format_status_badge(status: BillStatus) -> Text:
    return Text(f" {status.value} ", style=status_badge_style(status))


def format_date_time(value: datetime | None) -> str:
    """Format a timestamp in local time, e.g. ``6 Feb 2025, 10:30 AM``."""
    if value is None:
        return ""
    local = value.astimezone()
    hours = local.hour % 12 or 12
    meridiem = "PM" if local.hour >= 12 else "AM"
    return f"{local.day} {_MONTHS[local.month - 1]} {local.year}, {hours}:{local.minute:02d} {meridiem}"


def format_bill_label(bill: Bill) -> Text:
    """Render a one-line bill summary with its status badge."""
    text = Text()
    text.append_text(format_status_badge(bill.status))
    text.append(" ")
    if bill.table_no:
        text.append(f"Table {bill.table_no} • ")
    text.append(bill.bill_id, style="dim")
    text.append(f" • {bill.total_amount}", style="bold")
    return text


def format_item_row(item: LineItem) -> Text:
    text = Text()
    text.append(f"{item.name} x {item.quantity}")
    text.append(f"   {item.subtotal}", style="bold")
    return text


def format_bill_detail(bill: Bill, cursor: int | None = None) -> Text:
    """Render the full bill: header, item rows with an optional cursor, total."""
    lines = Text()
    lines.append_text(format_bill_label(bill))
    lines.append(f"\nCreated: {format_date_time(bill.created_at)}", style="dim")
    if bill.status is BillStatus.COMPLETED and bill.completed_at is not None:
        lines.append(f"\nCompleted: {format_date_time(bill.completed_at)}", style="dim")
    lines.append("\n")

    if not bill.items:
        lines.append("\n(no items)", style="dim")
    for idx, item in enumerate(bill.items):
        pointer = "➤ " if idx == cursor and bill.is_pending else "  "
        lines.append(f"\n{pointer}")
        lines.append_text(format_item_row(item))

    lines.append(f"\n\nTotal: {bill.total_amount}", style="bold")
    return lines
