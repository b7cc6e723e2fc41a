"""Full-state export and import of bills, menu and tables."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping

from cafe_billing.catalog import CatalogStore
from cafe_billing.constant import BACKUP_FILE_PREFIX, BILLS_KEY, MENU_KEY, TABLES_KEY
from cafe_billing.errors import InvalidSnapshot
from cafe_billing.models import (
    Snapshot,
    bill_to_dict,
    format_timestamp,
    menu_from_dict,
    menu_to_dict,
    parse_timestamp,
    tables_from_list,
    utc_now,
)
from cafe_billing.persistence import RecordStore
from cafe_billing.repository import BillRepository, bills_from_list

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("bills", "menu", "tables")


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    data: dict[str, Any] = {
        "bills": [bill_to_dict(bill) for bill in snapshot.bills],
        "menu": menu_to_dict(snapshot.menu),
        "tables": list(snapshot.tables),
    }
    if snapshot.backup_date is not None:
        data["backupDate"] = format_timestamp(snapshot.backup_date)
    return data


def snapshot_from_dict(data: Any) -> Snapshot:
    """Validate and decode a snapshot payload."""
    if not isinstance(data, Mapping):
        raise InvalidSnapshot("Invalid backup file format.")
    missing = [name for name in _REQUIRED_FIELDS if data.get(name) is None]
    if missing:
        raise InvalidSnapshot(f"Invalid backup file format: missing {', '.join(missing)}")

    backup_date = None
    raw_date = data.get("backupDate")
    if isinstance(raw_date, str):
        try:
            backup_date = parse_timestamp(raw_date)
        except ValueError as exc:
            raise InvalidSnapshot(f"Invalid backupDate {raw_date!r}") from exc

    return Snapshot(
        bills=tuple(bills_from_list(data["bills"])),
        menu=menu_from_dict(data["menu"]),
        tables=tables_from_list(data["tables"]),
        backup_date=backup_date,
    )


def export_snapshot(store: RecordStore, now: datetime | None = None) -> Snapshot:
    return Snapshot(
        bills=tuple(BillRepository(store).load_all()),
        menu=CatalogStore(store).get_menu(),
        tables=CatalogStore(store).get_tables(),
        backup_date=now or utc_now(),
    )


def import_snapshot(store: RecordStore, snapshot: Snapshot | Mapping[str, Any]) -> Snapshot:
    """Replace bills, menu and tables together; nothing is written if the payload is invalid."""
    if not isinstance(snapshot, Snapshot):
        snapshot = snapshot_from_dict(snapshot)

    payload = snapshot_to_dict(snapshot)
    store.write_many(
        {
            BILLS_KEY: payload["bills"],
            MENU_KEY: payload["menu"],
            TABLES_KEY: payload["tables"],
        }
    )
    logger.info(
        "snapshot_imported bills=%d categories=%d tables=%d",
        len(snapshot.bills),
        len(snapshot.menu),
        len(snapshot.tables),
    )
    return snapshot


def backup_filename(today: date) -> str:
    return f"{BACKUP_FILE_PREFIX}{today.isoformat()}.json"


def write_backup(store: RecordStore, directory: str | Path, now: datetime | None = None) -> Path:
    """Write a JSON backup of the whole state into ``directory`` and return its path."""
    now = now or utc_now()
    snapshot = export_snapshot(store, now=now)
    target = Path(directory) / backup_filename(now.date())
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(snapshot_to_dict(snapshot), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("backup_written path=%s", target)
    return target


def read_backup(path: str | Path) -> Snapshot:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidSnapshot(f"Backup file is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise InvalidSnapshot(f"Cannot read backup file {path}: {exc.strerror or exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidSnapshot(f"Backup file is not valid JSON: {exc}") from exc
    return snapshot_from_dict(data)
