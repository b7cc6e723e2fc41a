"""Menu catalog and table registry persistence."""

from __future__ import annotations

import copy
import logging
import re
from typing import Any

from cafe_billing.constant import DEFAULT_MENU, DEFAULT_TABLES, MENU_KEY, TABLES_KEY
from cafe_billing.errors import (
    DuplicateCategory,
    DuplicateTable,
    EmptyName,
    InvalidPrice,
    ProductNotFound,
    UnknownCategory,
)
from cafe_billing.models import Product, menu_from_dict, menu_to_dict, tables_from_list
from cafe_billing.persistence import RecordStore

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")


def category_key(name: str) -> str:
    """Normalize a category name into its key (lowercase, no whitespace)."""
    return re.sub(r"\s+", "", name).lower()


def display_name(key: str) -> str:
    return key[:1].upper() + key[1:]


def parse_price(raw: Any) -> int:
    """Parse a product price strictly: a whole number of at least 1."""
    if isinstance(raw, bool):
        raise InvalidPrice(f"Price must be a whole number, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _DIGITS.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        raise InvalidPrice(f"Price must be a whole number, got {raw!r}")
    if value < 1:
        raise InvalidPrice("Price must be greater than 0")
    return value


def _clean_name(name: str | None, what: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise EmptyName(f"{what} cannot be empty")
    return cleaned


def _table_sort_key(value: str) -> tuple[int, int, str]:
    if _DIGITS.fullmatch(value):
        return (0, int(value), value)
    return (1, 0, value)


class CatalogStore:
    """Menu categories, products and table identifiers."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def get_menu(self) -> dict[str, list[Product]]:
        saved = self.store.read(MENU_KEY)
        if saved is None:
            return menu_from_dict(copy.deepcopy(DEFAULT_MENU))
        return menu_from_dict(saved)

    def save_menu(self, menu: dict[str, list[Product]]) -> None:
        self.store.write(MENU_KEY, menu_to_dict(menu))

    def get_tables(self) -> list[str]:
        """Return table identifiers, repairing a registry missing a default table."""
        saved = self.store.read(TABLES_KEY)
        if saved is None:
            return list(DEFAULT_TABLES)
        tables = tables_from_list(saved)

        missing = [table for table in DEFAULT_TABLES if table not in tables]
        if missing:
            tables = sorted(dict.fromkeys(tables + missing), key=_table_sort_key)
            self.save_tables(tables)
            logger.warning("table_registry_repaired added=%s", missing)
        return tables

    def save_tables(self, tables: list[str]) -> None:
        self.store.write(TABLES_KEY, list(tables))

    def add_category(self, name: str) -> str:
        cleaned = _clean_name(name, "Category name")
        key = category_key(cleaned)
        menu = self.get_menu()
        if key in menu:
            raise DuplicateCategory(f"Category {display_name(key)!r} already exists")
        menu[key] = []
        self.save_menu(menu)
        logger.info("category_added key=%s", key)
        return key

    def add_product(self, key: str, name: str, price: Any) -> Product:
        menu = self.get_menu()
        if key not in menu:
            raise UnknownCategory(key)
        product = Product(name=_clean_name(name, "Product name"), price=parse_price(price))
        menu[key].append(product)
        self.save_menu(menu)
        logger.info("product_added category=%s name=%s price=%d", key, product.name, product.price)
        return product

    def edit_product(self, key: str, index: int, name: str, price: Any) -> Product:
        menu = self.get_menu()
        if key not in menu:
            raise UnknownCategory(key)
        products = menu[key]
        if not (0 <= index < len(products)):
            raise ProductNotFound(f"Category {key!r} has no product at index {index}")
        product = Product(name=_clean_name(name, "Product name"), price=parse_price(price))
        products[index] = product
        self.save_menu(menu)
        return product

    def remove_product(self, key: str, index: int) -> None:
        menu = self.get_menu()
        products = menu.get(key)
        if products is None or not (0 <= index < len(products)):
            return
        del products[index]
        self.save_menu(menu)

    def delete_category(self, key: str) -> None:
        menu = self.get_menu()
        if key not in menu:
            return
        del menu[key]
        self.save_menu(menu)
        logger.info("category_deleted key=%s", key)

    def add_table(self, value: str) -> str:
        cleaned = _clean_name(value, "Table number")
        tables = self.get_tables()
        if cleaned in tables:
            raise DuplicateTable(f"Table {cleaned!r} already exists")
        tables.append(cleaned)
        self.save_tables(tables)
        logger.info("table_added table=%s", cleaned)
        return cleaned
