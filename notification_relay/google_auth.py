"""Load and refresh the stored Google OAuth token shared by Gmail and Sheets."""

from __future__ import annotations

import logging
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from .config import Settings

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
]


class GoogleAuthError(RuntimeError):
    """Raised when no usable Google credentials are available."""


def load_credentials(settings: Settings) -> Credentials:
    """Return valid credentials from ``GOOGLE_TOKEN_FILE``, refreshing and persisting if needed."""
    token_path: Path = settings.google_token_file
    if not token_path.exists():
        raise GoogleAuthError(
            f"Google token file {token_path} not found; authorize the account and save the token there."
        )

    try:
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except ValueError as exc:
        raise GoogleAuthError(f"Google token file {token_path} is not a valid authorized-user token: {exc}") from exc
    if creds.valid:
        return creds

    if not creds.refresh_token:
        raise GoogleAuthError(f"Google token in {token_path} is expired and has no refresh token.")

    logger.info("Refreshing Google access token")
    try:
        creds.refresh(Request())
    except RefreshError as exc:
        raise GoogleAuthError(f"Unable to refresh Google token: {exc}") from exc

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    return creds
