"""Gmail API helper focused on thread search and header retrieval."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .google_auth import load_credentials
from .models import MailMessage, MailThread
from .utils import from_epoch_millis

logger = logging.getLogger(__name__)


class GmailError(RuntimeError):
    """Raised when the Gmail API rejects a request."""


class GmailClient:
    """Thin wrapper that runs a Gmail search and yields threads of messages."""

    USER_ID = "me"
    METADATA_HEADERS = ["From", "Subject"]

    def __init__(self, settings: Settings, service: Any = None, page_size: int = 100) -> None:
        self.settings = settings
        self.page_size = page_size
        if service is None:
            service = build("gmail", "v1", credentials=load_credentials(settings), cache_discovery=False)
        self.service = service

    def search(self, query: str) -> Iterator[MailThread]:
        """Yield every thread matching ``query`` in the order Gmail returns them."""
        logger.info("Searching Gmail with query %r", query)
        page_token: str | None = None
        while True:
            params = {"userId": self.USER_ID, "q": query, "maxResults": self.page_size}
            if page_token:
                params["pageToken"] = page_token
            payload = self._execute(self.service.users().threads().list(**params))

            for ref in payload.get("threads", []):
                yield self._get_thread(ref["id"])

            page_token = payload.get("nextPageToken")
            if not page_token:
                return

    def _get_thread(self, thread_id: str) -> MailThread:
        logger.debug("Fetching Gmail thread %s", thread_id)
        raw = self._execute(
            self.service.users()
            .threads()
            .get(
                userId=self.USER_ID,
                id=thread_id,
                format="metadata",
                metadataHeaders=self.METADATA_HEADERS,
            )
        )
        return MailThread(
            thread_id=raw.get("id", thread_id),
            messages=[self._to_message(message) for message in raw.get("messages", [])],
        )

    @staticmethod
    def _execute(request) -> dict:
        try:
            return request.execute()
        except HttpError as exc:
            logger.error("Gmail request failed (%s): %s", exc.status_code, exc.reason)
            raise GmailError(f"Gmail request failed: {exc.reason}") from exc

    @staticmethod
    def _to_message(raw: dict) -> MailMessage:
        headers = {
            header.get("name", "").lower(): header.get("value", "")
            for header in (raw.get("payload") or {}).get("headers", [])
        }
        return MailMessage(
            message_id=raw["id"],
            sent_at=from_epoch_millis(raw.get("internalDate", 0)),
            sender=headers.get("from", ""),
            subject=headers.get("subject", ""),
        )
