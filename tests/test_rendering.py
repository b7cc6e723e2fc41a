from datetime import datetime, timezone

from cafe_billing.models import Bill, BillStatus, LineItem
from cafe_billing.rendering import (
    format_bill_detail,
    format_bill_label,
    format_date_time,
    format_item_row,
    format_status_badge,
    status_badge_style,
)

CREATED = datetime(2025, 2, 6, 10, 30)


def _bill(status=BillStatus.PENDING, items=(LineItem("Espresso", 80, 2), LineItem("Samosa", 30, 1))):
    return Bill(
        bill_id="BILL-1",
        table_no="5",
        items=items,
        status=status,
        created_at=CREATED.astimezone(timezone.utc),
        completed_at=CREATED.astimezone(timezone.utc) if status is BillStatus.COMPLETED else None,
    )


def test_status_badges_differ():
    assert status_badge_style(BillStatus.PENDING) != status_badge_style(BillStatus.COMPLETED)
    assert format_status_badge(BillStatus.COMPLETED).plain == " COMPLETED "


def test_format_date_time_uses_local_twelve_hour_clock():
    local = datetime(2025, 2, 6, 10, 30).astimezone()
    assert format_date_time(local) == "6 Feb 2025, 10:30 AM"
    assert format_date_time(datetime(2025, 12, 31, 0, 5).astimezone()) == "31 Dec 2025, 12:05 AM"
    assert format_date_time(datetime(2025, 7, 1, 13, 0).astimezone()) == "1 Jul 2025, 1:00 PM"
    assert format_date_time(None) == ""


def test_format_bill_label():
    assert format_bill_label(_bill()).plain == " PENDING  Table 5 • BILL-1 • 190"


def test_format_item_row():
    assert format_item_row(LineItem("Latte", 130, 3)).plain == "Latte x 3   390"


def test_format_bill_detail_pending_with_cursor():
    plain = format_bill_detail(_bill(), cursor=1).plain
    assert "Created: 6 Feb 2025, 10:30 AM" in plain
    assert "  Espresso x 2   160" in plain
    assert "➤ Samosa x 1   30" in plain
    assert plain.endswith("Total: 190")
    assert "Completed:" not in plain


def test_format_bill_detail_completed_hides_cursor():
    plain = format_bill_detail(_bill(status=BillStatus.COMPLETED), cursor=0).plain
    assert "Completed: 6 Feb 2025, 10:30 AM" in plain
    assert "➤" not in plain


def test_format_bill_detail_empty_bill():
    plain = format_bill_detail(_bill(items=()), cursor=0).plain
    assert "(no items)" in plain
    assert plain.endswith("Total: 0")
