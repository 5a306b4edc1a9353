from __future__ import annotations

from datetime import UTC, datetime

import pytest

from notification_relay.config import Settings
from notification_relay.models import MailMessage, MailThread

HOOK_A = "https://discord.example/api/webhooks/1/token-a"
HOOK_B = "https://discord.example/api/webhooks/2/token-b"


class FakeMailClient:
    def __init__(self, threads: list[MailThread]) -> None:
        self.threads = threads
        self.queries: list[str] = []

    def search(self, query: str):
        self.queries.append(query)
        return iter(self.threads)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        BASE_QUERY="from:confluence@example.com",
        WEB_HOOK_URL=f"{HOOK_A},{HOOK_B}",
        LEDGER_DB=tmp_path / "ledger.db",
        REFERENCE_TIMEZONE="UTC",
        GOOGLE_TOKEN_FILE=tmp_path / "token.json",
    )


@pytest.fixture
def release_message():
    return MailMessage(
        message_id="18f2a0c4d1e",
        sent_at=datetime(2024, 5, 1, 10, 0, 0, tzinfo=UTC),
        sender='"Bot (Confluence)" <bot@x>',
        subject="[Confluence] Release notes",
    )
