"""Typed containers shared across the relay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


@dataclass
class MailMessage:
    """The fields of a Gmail message the relay consumes."""

    message_id: str
    sent_at: datetime
    sender: str
    subject: str


@dataclass
class MailThread:
    """A search hit; Gmail groups messages into threads."""

    thread_id: str
    messages: list[MailMessage] = field(default_factory=list)


@dataclass
class CleansedNotification:
    """Display-ready view of one message."""

    message_id: str
    subject: Optional[str]
    sender_name: str
    formatted_date: str
    formatted_datetime: str

    @property
    def discard(self) -> bool:
        return not self.subject


@dataclass
class RelayStats:
    """Per-run counters logged in the closing summary."""

    scanned: int = 0
    discarded: int = 0
    duplicates: int = 0
    relayed: int = 0


class WebhookPayload(BaseModel):
    """Body posted to Discord-style webhooks."""

    content: str
