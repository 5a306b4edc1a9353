"""Configuration management for the Confluence→webhook relay."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()

DEFAULT_DENY_SUBJECTS = "mentioned you;Confluence changes in the last 24 hours"


def _split_list(value: str | Sequence[str] | None, pattern: str = r"[;,]") -> list[str]:
    """Turn delimiter-separated env strings into cleaned lists."""
    if value is None:
        return []
    if isinstance(value, str):
        items = re.split(pattern, value)
    else:
        items = list(value)
    return [item.strip() for item in items if item.strip()]


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    base_query: str = Field(..., alias="BASE_QUERY")
    web_hook_url_raw: str = Field(..., alias="WEB_HOOK_URL")
    spread_sheet_id: str | None = Field(None, alias="SPREAD_SHEET_ID")
    ledger_backend: Literal["sqlite", "sheets"] = Field("sqlite", alias="LEDGER_BACKEND")
    ledger_db: Path = Field(Path("data/relayed_messages.db"), alias="LEDGER_DB")
    reference_timezone: str = Field("UTC", alias="REFERENCE_TIMEZONE")
    google_token_file: Path = Field(Path("data/google_token.json"), alias="GOOGLE_TOKEN_FILE")
    deny_subjects_raw: str = Field(DEFAULT_DENY_SUBJECTS, alias="DENY_SUBJECTS")
    webhook_timeout: int = Field(30, alias="WEBHOOK_TIMEOUT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("spread_sheet_id", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("base_query")
    @classmethod
    def _require_base_query(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("BASE_QUERY must not be empty.")
        return stripped

    @field_validator("web_hook_url_raw")
    @classmethod
    def _require_web_hook_url(cls, value: str) -> str:
        if not _split_list(value, pattern=","):
            raise ValueError("WEB_HOOK_URL must list at least one URL.")
        return value

    @field_validator("reference_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"REFERENCE_TIMEZONE '{value}' is not a known time zone.") from exc
        return value

    @model_validator(mode="after")
    def _validate_ledger(self):
        if self.ledger_backend == "sheets" and not self.spread_sheet_id:
            raise ValueError("SPREAD_SHEET_ID is required when LEDGER_BACKEND=sheets.")
        return self

    @property
    def web_hook_urls(self) -> list[str]:
        return _split_list(self.web_hook_url_raw, pattern=",")

    @property
    def deny_subjects(self) -> list[str]:
        return _split_list(self.deny_subjects_raw, pattern=";")

    @property
    def tz(self) -> ZoneInfo:
        """Reference zone used for display dates and ledger page names."""
        return ZoneInfo(self.reference_timezone)
