"""Entry point for the cafe-billing Textual app and its maintenance commands."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

from cafe_billing.catalog import CatalogStore, category_key, display_name
from cafe_billing.config import DB_PATH, LOG_PATH
from cafe_billing.errors import BillingError, ProductNotFound
from cafe_billing.models import Product, utc_now
from cafe_billing.persistence import RecordStore
from cafe_billing.repository import BillRepository
from cafe_billing.snapshot import import_snapshot, read_backup, write_backup

logger = logging.getLogger("cafe_billing")

_NUMBER = re.compile(r"[0-9]+")


def configure_logging(log_path: str = LOG_PATH, level: int = logging.INFO) -> None:
    """Send logs to a file; the terminal belongs to the app."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        filename=str(path),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cafe-billing", description="Cafe bill tracking")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--backup", metavar="DIR", help="write a JSON backup of all data into DIR and exit")
    group.add_argument("--restore", metavar="FILE", help="replace all data with a JSON backup and exit")
    group.add_argument("--purge-days", metavar="DAYS", type=int, help="delete bills older than DAYS days and exit")
    group.add_argument("--reset", action="store_true", help="delete all bills (menu and tables are kept) and exit")
    group.add_argument("--list-menu", action="store_true", help="print the menu with product numbers and exit")
    group.add_argument("--list-tables", action="store_true", help="print the table numbers and exit")
    group.add_argument("--add-category", metavar="NAME", help="add an empty menu category")
    group.add_argument(
        "--add-product", nargs=3, metavar=("CATEGORY", "NAME", "PRICE"), help="append a product to a category"
    )
    group.add_argument(
        "--edit-product",
        nargs=4,
        metavar=("CATEGORY", "NUMBER", "NAME", "PRICE"),
        help="replace the name and price of product NUMBER (as shown by --list-menu)",
    )
    group.add_argument("--remove-product", nargs=2, metavar=("CATEGORY", "NUMBER"), help="remove product NUMBER")
    group.add_argument("--delete-category", metavar="CATEGORY", help="delete a category and all its products")
    group.add_argument("--add-table", metavar="TABLE", help="add a table number")
    return parser


def _product_index(raw: str) -> int:
    """Turn a 1-based product number from the command line into a list index."""
    cleaned = raw.strip()
    if not _NUMBER.fullmatch(cleaned) or int(cleaned) < 1:
        raise ProductNotFound(f"Product number must be 1 or more, got {raw!r}")
    return int(cleaned) - 1


def format_menu(menu: dict[str, list[Product]]) -> str:
    if not menu:
        return "No categories."
    lines = []
    for key, products in menu.items():
        lines.append(f"{display_name(key)} ({key})")
        if not products:
            lines.append("  (empty)")
        for number, product in enumerate(products, start=1):
            lines.append(f"  {number}. {product.name}  {product.price}")
    return "\n".join(lines)


def _run_catalog_command(args: argparse.Namespace, catalog: CatalogStore) -> str | None:
    if args.list_menu:
        return format_menu(catalog.get_menu())
    if args.list_tables:
        return ", ".join(catalog.get_tables())
    if args.add_category is not None:
        key = catalog.add_category(args.add_category)
        return f"Category {display_name(key)} added."
    if args.add_product:
        category, name, price = args.add_product
        product = catalog.add_product(category_key(category), name, price)
        return f"{product.name} ({product.price}) added to {display_name(category_key(category))}."
    if args.edit_product:
        category, number, name, price = args.edit_product
        product = catalog.edit_product(category_key(category), _product_index(number), name, price)
        return f"Product {number.strip()} is now {product.name} ({product.price})."
    if args.remove_product:
        category, number = args.remove_product
        catalog.remove_product(category_key(category), _product_index(number))
        return f"Product {number.strip()} removed from {display_name(category_key(category))}."
    if args.delete_category is not None:
        catalog.delete_category(category_key(args.delete_category))
        return f"Category {display_name(category_key(args.delete_category))} deleted."
    if args.add_table is not None:
        return f"Table {catalog.add_table(args.add_table)} added."
    return None


def run_command(args: argparse.Namespace, store: RecordStore) -> str | None:
    """Run a maintenance command; returns its report, or None when no command was given."""
    if args.backup:
        return f"Backup written to {write_backup(store, args.backup)}"
    if args.restore:
        snapshot = import_snapshot(store, read_backup(args.restore))
        return f"Restored {len(snapshot.bills)} bill(s) from {args.restore}"
    if args.purge_days is not None:
        removed = BillRepository(store).purge_older_than(args.purge_days, utc_now())
        return f"{removed} bill(s) removed."
    if args.reset:
        BillRepository(store).delete_all()
        return "All bills deleted."
    return _run_catalog_command(args, CatalogStore(store))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    store = RecordStore(args.db)

    try:
        report = run_command(args, store)
    except BillingError as exc:
        logger.error("command_failed error=%r", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if report is not None:
        print(report)
        return 0

    from cafe_billing.billing_app import BillingApp

    BillingApp(store).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
