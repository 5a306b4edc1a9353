"""Filtering and cleanup of Confluence notification subjects and senders."""

from __future__ import annotations

import logging
import re
from datetime import tzinfo
from typing import Iterable, Optional

from .models import CleansedNotification, MailMessage
from .utils import format_date

logger = logging.getLogger(__name__)


class MessageCleanser:
    """Drop noisy notifications and strip the tool's decorations from the rest."""

    def __init__(
        self,
        deny_subjects: Iterable[str],
        tz: tzinfo,
        tool_name: str = "Confluence",
    ) -> None:
        self.deny_subjects = [word for word in deny_subjects if word]
        self.tz = tz
        tool = re.escape(tool_name)
        # `[Confluence] こんぺこ` -> `こんぺこ`
        self.subject_pattern = re.compile(rf"\[{tool}\](.*)")
        # `"ぺこーら (Confluence)" <hoge>` -> `ぺこーら`; the opening quote may be missing.
        self.sender_pattern = re.compile(rf'(?:.*")?(.+?) \({tool}\)".*')

    def cleanse_subject(self, subject: str) -> Optional[str]:
        """Return the display subject, or None when the message should be dropped."""
        for word in self.deny_subjects:
            if word in subject:
                logger.debug("Subject '%s' matched deny-list entry '%s'", subject, word)
                return None

        trimmed = subject.strip()
        match = self.subject_pattern.search(trimmed)
        if match:
            return match.group(1).strip()
        return trimmed

    def cleanse_sender_name(self, sender: str) -> str:
        trimmed = sender.strip()
        match = self.sender_pattern.match(trimmed)
        if match:
            return match.group(1).strip()
        return trimmed

    def cleanse(self, message: MailMessage) -> CleansedNotification:
        return CleansedNotification(
            message_id=message.message_id,
            subject=self.cleanse_subject(message.subject),
            sender_name=self.cleanse_sender_name(message.sender),
            formatted_date=format_date(message.sent_at, self.tz),
            formatted_datetime=format_date(message.sent_at, self.tz, include_time=True),
        )
