"""Runtime configuration defaults for persistence and logging."""

from __future__ import annotations

import os

_DB_PATH_ENV = "CAFE_BILLING_DB_PATH"
_LOG_PATH_ENV = "CAFE_BILLING_LOG_PATH"

DB_PATH = os.environ.get(_DB_PATH_ENV, "").strip() or "data/cafe-billing.db"
LOG_PATH = os.environ.get(_LOG_PATH_ENV, "").strip() or "/tmp/cafe-billing.log"
