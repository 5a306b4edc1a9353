"""Gmail search query with a one-day lookback."""

from __future__ import annotations

from datetime import datetime

from .config import Settings
from .utils import yesterday


def build_query(settings: Settings, now: datetime | None = None) -> str:
    """Return ``BASE_QUERY after:<yesterday>``; the date is computed in the reference zone."""
    return " ".join([settings.base_query, f"after:{yesterday(settings.tz, now)}"])
