"""Per-day ledger of relayed message IDs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Optional, Protocol

import sqlite_utils
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .google_auth import load_credentials

logger = logging.getLogger(__name__)


class LedgerError(RuntimeError):
    """Raised when the ledger backend cannot be read or written."""


class LedgerStore(Protocol):
    """Backend holding the ordered list of IDs relayed per day."""

    def get(self, day: str) -> Optional[list[str]]: ...

    def append(self, day: str, message_id: str) -> None: ...


class SqliteLedgerStore:
    """Store relayed IDs in SQLite, one row per day and message."""

    TABLE = "relayed_messages"

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db = sqlite_utils.Database(str(db_path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self.db[self.TABLE].create(
            {
                "day": str,
                "message_id": str,
                "recorded_at": str,
            },
            pk=("day", "message_id"),
            if_not_exists=True,
        )

    def get(self, day: str) -> Optional[list[str]]:
        rows = self.db[self.TABLE].rows_where("day = ?", [day], order_by="rowid")
        ids = [row["message_id"] for row in rows]
        return ids or None

    def append(self, day: str, message_id: str) -> None:
        self.db[self.TABLE].insert(
            {
                "day": day,
                "message_id": message_id,
                "recorded_at": datetime.now(tz=UTC).isoformat(),
            },
            pk=("day", "message_id"),
            ignore=True,
        )


class SheetsLedgerStore:
    """Store relayed IDs in a spreadsheet: one sheet per day, a comma-joined list in A1."""

    CELL = "A1"

    def __init__(self, settings: Settings, service: Any = None) -> None:
        if not settings.spread_sheet_id:
            raise LedgerError("SPREAD_SHEET_ID is not configured.")
        self.spreadsheet_id = settings.spread_sheet_id
        if service is None:
            service = build("sheets", "v4", credentials=load_credentials(settings), cache_discovery=False)
        self.service = service

    def get(self, day: str) -> Optional[list[str]]:
        value = self._read_cell(day)
        if not value:
            return None
        return value.split(",")

    def append(self, day: str, message_id: str) -> None:
        value = self._read_cell(day)
        new_value = f"{value},{message_id}" if value else message_id
        self._execute(
            self.service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=self._cell_range(day),
                valueInputOption="RAW",
                body={"values": [[new_value]]},
            )
        )

    def ensure_sheet(self, day: str) -> None:
        """Create the sheet named ``day`` unless it already exists."""
        meta = self._execute(
            self.service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title"
            )
        )
        titles = {sheet["properties"]["title"] for sheet in meta.get("sheets", [])}
        if day in titles:
            return
        logger.info("Creating ledger sheet %s", day)
        self._execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": day}}}]},
            )
        )

    def _read_cell(self, day: str) -> str:
        self.ensure_sheet(day)
        payload = self._execute(
            self.service.spreadsheets()
            .values()
            .get(
                spreadsheetId=self.spreadsheet_id,
                range=self._cell_range(day),
                valueRenderOption="FORMATTED_VALUE",
            )
        )
        values = payload.get("values") or [[""]]
        return str(values[0][0]) if values[0] else ""

    def _cell_range(self, day: str) -> str:
        return f"'{day}'!{self.CELL}"

    @staticmethod
    def _execute(request) -> dict:
        try:
            return request.execute()
        except HttpError as exc:
            logger.error("Sheets request failed (%s): %s", exc.status_code, exc.reason)
            raise LedgerError(f"Sheets request failed: {exc.reason}") from exc


class DedupLedger:
    """Answer "was this message already relayed on that day?" and remember new ones."""

    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def exists(self, message_id: str, day: str) -> bool:
        return message_id in (self.store.get(day) or [])

    def record(self, message_id: str, day: str) -> None:
        logger.debug("Recording message %s under %s", message_id, day)
        self.store.append(day, message_id)


def build_ledger(settings: Settings) -> DedupLedger:
    if settings.ledger_backend == "sheets":
        return DedupLedger(SheetsLedgerStore(settings))
    return DedupLedger(SqliteLedgerStore(settings.ledger_db))
