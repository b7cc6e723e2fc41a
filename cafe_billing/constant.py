"""Editable static menu and table configuration."""

from __future__ import annotations

DEFAULT_MENU: dict[str, list[dict[str, object]]] = {
    "coffee": [
        {"name": "Espresso", "price": 80},
        {"name": "Cappuccino", "price": 120},
        {"name": "Latte", "price": 130},
        {"name": "Americano", "price": 100},
        {"name": "Cold Coffee", "price": 110},
    ],
    "snacks": [
        {"name": "Samosa", "price": 30},
        {"name": "Sandwich", "price": 60},
        {"name": "Croissant", "price": 70},
        {"name": "Cake Slice", "price": 80},
        {"name": "Cookies", "price": 40},
    ],
    "meals": [
        {"name": "Pasta", "price": 150},
        {"name": "Burger", "price": 120},
        {"name": "Pizza Slice", "price": 100},
        {"name": "Soup", "price": 90},
        {"name": "Salad", "price": 110},
    ],
}

DEFAULT_TABLES: tuple[str, ...] = tuple(str(number) for number in range(1, 15))

# Persisted record keys, one full-replace document each.
BILLS_KEY = "cafe-bills"
MENU_KEY = "cafe-menu"
TABLES_KEY = "cafe-tables"

BILL_ID_PREFIX = "BILL-"
BACKUP_FILE_PREFIX = "cafe-backup-"
