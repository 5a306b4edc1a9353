"""Discord-style webhook poster."""

from __future__ import annotations

import logging
import random
from typing import Iterable, Sequence

import requests

from .models import WebhookPayload

logger = logging.getLogger(__name__)

PHRASES = (
    "Confluenceに更新があったよ！",
    "新しい通知が届きました",
    "ページが更新されたみたい",
    "お知らせです",
    "チェックしてみてね",
    "Confluenceからのお便りです",
    "更新情報をお届けします",
    "見逃し注意！",
    "ドキュメントに動きがありました",
    "今日も一日お疲れさまです",
)


class WebhookDeliveryError(RuntimeError):
    """Raised when a payload could not be delivered to any endpoint."""


class WebhookNotifier:
    """Post a chat message to every configured webhook URL."""

    def __init__(
        self,
        urls: Sequence[str],
        timeout: int = 30,
        session: requests.Session | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.urls = list(urls)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.rng = rng or random.Random()

    def build_payload(self, lines: Iterable[str]) -> WebhookPayload:
        phrase = self.rng.choice(PHRASES)
        return WebhookPayload(content="\n".join([phrase, *lines]))

    def notify(self, lines: Iterable[str]) -> WebhookPayload:
        """Send ``lines`` (prefixed with a random phrase) to each URL in turn.

        A failing endpoint is logged and skipped; the remaining endpoints are
        still attempted. Raises ``WebhookDeliveryError`` only when every
        endpoint failed.
        """
        payload = self.build_payload(lines)
        body = payload.model_dump_json()
        headers = {"Content-Type": "application/json"}

        failures = 0
        for url in self.urls:
            try:
                response = self.session.post(url, data=body.encode("utf-8"), headers=headers, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                failures += 1
                logger.error("Webhook delivery to %s failed: %s", _redact(url), exc)
                continue
            logger.debug("Delivered webhook to %s (%s)", _redact(url), response.status_code)

        if self.urls and failures == len(self.urls):
            raise WebhookDeliveryError(f"All {failures} webhook endpoint(s) failed.")
        return payload


def _redact(url: str) -> str:
    """Mask the trailing token segment of a webhook URL."""
    return url.rsplit("/", 1)[0] + "/***" if "/" in url else url
