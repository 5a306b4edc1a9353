"""Relay Confluence notification emails from Gmail to chat webhooks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterator, Protocol

from .config import Settings
from .dedup_ledger import DedupLedger, build_ledger
from .gmail_client import GmailClient
from .message_cleanser import MessageCleanser
from .models import MailMessage, MailThread, RelayStats
from .query_builder import build_query
from .webhook_notifier import WebhookNotifier

logger = logging.getLogger(__name__)


class MailSearcher(Protocol):
    """Anything that turns a search query into mail threads."""

    def search(self, query: str) -> Iterator[MailThread]: ...


class NotificationRelay:
    """Search, filter, dedupe and post notifications for one run."""

    def __init__(
        self,
        settings: Settings,
        mail_client: MailSearcher,
        cleanser: MessageCleanser,
        ledger: DedupLedger,
        notifier: WebhookNotifier,
    ) -> None:
        self.settings = settings
        self.mail_client = mail_client
        self.cleanser = cleanser
        self.ledger = ledger
        self.notifier = notifier

    def scan(self, query: str) -> Iterator[MailMessage]:
        """Flatten search results into messages, in backend order."""
        for thread in self.mail_client.search(query):
            yield from thread.messages

    def run(self, now: datetime | None = None) -> RelayStats:
        stats = RelayStats()
        query = build_query(self.settings, now)

        for message in self.scan(query):
            stats.scanned += 1
            notification = self.cleanser.cleanse(message)

            if notification.discard:
                logger.debug("Discarding message %s (%r)", message.message_id, message.subject)
                stats.discarded += 1
                continue

            if self.ledger.exists(notification.message_id, notification.formatted_date):
                logger.info(
                    "Already relayed message %s on %s; skipping",
                    notification.message_id,
                    notification.formatted_date,
                )
                stats.duplicates += 1
                continue

            self.notifier.notify(
                [
                    notification.formatted_datetime,
                    notification.subject,
                    notification.sender_name,
                ]
            )
            self.ledger.record(notification.message_id, notification.formatted_date)
            logger.info("Relayed '%s' from %s", notification.subject, notification.sender_name)
            stats.relayed += 1

        logger.info(
            "Run complete: scanned=%s relayed=%s duplicates=%s discarded=%s",
            stats.scanned,
            stats.relayed,
            stats.duplicates,
            stats.discarded,
        )
        return stats


def build_relay(settings: Settings) -> NotificationRelay:
    return NotificationRelay(
        settings=settings,
        mail_client=GmailClient(settings),
        cleanser=MessageCleanser(settings.deny_subjects, settings.tz),
        ledger=build_ledger(settings),
        notifier=WebhookNotifier(settings.web_hook_urls, timeout=settings.webhook_timeout),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    build_relay(settings).run()
