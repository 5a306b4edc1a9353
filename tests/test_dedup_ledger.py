from __future__ import annotations

from unittest.mock import MagicMock, Mock

import pytest
from googleapiclient.errors import HttpError

from notification_relay.dedup_ledger import (
    DedupLedger,
    LedgerError,
    SheetsLedgerStore,
    SqliteLedgerStore,
    build_ledger,
)


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeSheetsService:
    """In-memory stand-in for the Sheets v4 resource used by the ledger."""

    def __init__(self) -> None:
        self.sheets: dict[str, str] = {}
        self.add_sheet_calls = 0

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def get(self, spreadsheetId, fields=None, range=None, valueRenderOption=None):
        if range is None:
            return _Request(
                lambda: {"sheets": [{"properties": {"title": title}} for title in self.sheets]}
            )

        def read():
            value = self.sheets[self._title(range)]
            return {"values": [[value]]} if value else {}

        return _Request(read)

    def update(self, spreadsheetId, range, valueInputOption, body):
        def write():
            self.sheets[self._title(range)] = body["values"][0][0]
            return {}

        return _Request(write)

    def batchUpdate(self, spreadsheetId, body):
        def add():
            self.add_sheet_calls += 1
            title = body["requests"][0]["addSheet"]["properties"]["title"]
            self.sheets.setdefault(title, "")
            return {}

        return _Request(add)

    @staticmethod
    def _title(cell_range: str) -> str:
        return cell_range.split("!")[0].strip("'")


@pytest.fixture
def sheets_settings(settings):
    return settings.model_copy(update={"ledger_backend": "sheets", "spread_sheet_id": "sheet-123"})


@pytest.fixture(params=["sqlite", "sheets"])
def ledger(request, settings, sheets_settings):
    if request.param == "sqlite":
        return DedupLedger(SqliteLedgerStore(settings.ledger_db))
    return DedupLedger(SheetsLedgerStore(sheets_settings, service=FakeSheetsService()))


def test_unknown_id_does_not_exist(ledger):
    assert not ledger.exists("A", "2024-05-01")


def test_recorded_id_exists_for_that_day_only(ledger):
    ledger.record("A", "2024-05-01")

    assert ledger.exists("A", "2024-05-01")
    assert not ledger.exists("A", "2024-05-02")


def test_substring_of_recorded_id_is_not_a_match(ledger):
    ledger.record("18f2a0c4d1e", "2024-05-01")

    assert not ledger.exists("18f2a0", "2024-05-01")


def test_records_append_in_order(ledger):
    ledger.record("A", "2024-05-01")
    ledger.record("B", "2024-05-01")

    assert ledger.store.get("2024-05-01") == ["A", "B"]


def test_sheets_cell_holds_comma_joined_ids(sheets_settings):
    service = FakeSheetsService()
    ledger = DedupLedger(SheetsLedgerStore(sheets_settings, service=service))

    ledger.record("A", "2024-05-01")
    ledger.record("B", "2024-05-01")

    assert service.sheets["2024-05-01"] == "A,B"


def test_sheets_page_created_once(sheets_settings):
    service = FakeSheetsService()
    store = SheetsLedgerStore(sheets_settings, service=service)

    store.ensure_sheet("2024-05-01")
    store.ensure_sheet("2024-05-01")
    store.get("2024-05-01")

    assert service.add_sheet_calls == 1
    assert list(service.sheets) == ["2024-05-01"]


def test_sheets_http_error_is_wrapped(sheets_settings):
    service = MagicMock()
    error = HttpError(Mock(status=403, reason="Forbidden"), b"{}")
    service.spreadsheets.return_value.get.return_value.execute.side_effect = error
    store = SheetsLedgerStore(sheets_settings, service=service)

    with pytest.raises(LedgerError):
        store.get("2024-05-01")


def test_sheets_store_requires_spreadsheet_id(settings):
    with pytest.raises(LedgerError):
        SheetsLedgerStore(settings, service=FakeSheetsService())


def test_sqlite_duplicate_record_is_ignored(settings):
    store = SqliteLedgerStore(settings.ledger_db)
    store.append("2024-05-01", "A")
    store.append("2024-05-01", "A")

    assert store.get("2024-05-01") == ["A"]


def test_sqlite_ledger_survives_reopen(settings):
    DedupLedger(SqliteLedgerStore(settings.ledger_db)).record("A", "2024-05-01")

    reopened = build_ledger(settings)

    assert reopened.exists("A", "2024-05-01")
