"""Shared constants for the freshtime CLI."""

from __future__ import annotations

API_BASE_URL: str = "https://api.freshbooks.com"
AUTHORIZE_URL: str = "https://auth.freshbooks.com/service/auth/oauth/authorize"
TOKEN_PATH: str = "/auth/oauth/token"

PAGE_SIZE: int = 100
MAX_ERROR_BODY_LEN: int = 500

WORKWEEK_DAYS: int = 5
DAY_HEADERS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri")

DEFAULT_CURRENCY: str = "USD"
DEFAULT_LINE_NAME: str = "Consulting"
LINE_TYPE_NORMAL: int = 0
INVOICE_STATUS_CODES: dict[str, int] = {"draft": 1, "final": 2}
DEFAULT_INVOICE_STATUS: str = "draft"

OAUTH_CALLBACK_PORT: int = 8457
OAUTH_REDIRECT_URI: str = f"https://localhost:{OAUTH_CALLBACK_PORT}/callback"

REAUTH_HINT: str = "Run `freshtime setup` to re-authenticate."
