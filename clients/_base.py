"""Base FreshBooks client: authenticated HTTP transport, refresh and pagination.

Provides ``BaseFreshBooksClient`` -- the async HTTP client every domain
resource delegates to.  The bearer token lives in a :class:`Session` owned by
the client for one CLI invocation.

Behaviour:
    * HTTP 401 -> ``AuthError``; other non-2xx -> ``ApiError``; transport
      failures -> ``NetworkError``.
    * The first 401 of a logical request triggers exactly one token refresh
      (persisted through the injected ``ConfigStore``) and one retry.  The
      retry budget is the ``attempt`` argument, never shared state.
    * List endpoints come in two envelope shapes; ``get_paginated`` decodes
      either and drains every page sequentially.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from _constants import API_BASE_URL, PAGE_SIZE, REAUTH_HINT, TOKEN_PATH
from _errors import ApiError, AuthError, ConfigError, NetworkError
from config import Config, ConfigStore, OAuthApp

__all__ = ["BaseFreshBooksClient", "Session"]

logger = logging.getLogger("freshtime.client")

_MAX_ATTEMPTS: int = 2


@dataclass
class Session:
    access_token: str
    refresh_token: str | None = None


@dataclass(frozen=True)
class _Page:
    items: list[dict[str, Any]]
    pages: int


class BaseFreshBooksClient:
    """Async HTTP client for the FreshBooks accounting and timetracking APIs."""

    # -- construction -------------------------------------------------------

    def __init__(
        self,
        config: Config,
        store: ConfigStore | None = None,
        oauth_app: OAuthApp | None = None,
        *,
        base_url: str = API_BASE_URL,
    ) -> None:
        self._config = config
        self._store = store
        self._oauth_app = oauth_app
        self._base_url: str = base_url.rstrip("/")
        self.session = Session(config.access_token, config.refresh_token)
        # Coalesces concurrent refreshes triggered by parallel requests.
        self._refresh_lock = asyncio.Lock()
        self._http: httpx.AsyncClient = httpx.AsyncClient(
            follow_redirects=False,
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=30.0, pool=5.0),
        )

    @property
    def config(self) -> Config:
        return self._config

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._http.aclose()

    async def __aenter__(self) -> BaseFreshBooksClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- public verbs -------------------------------------------------------

    async def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Any) -> Any:
        return await self._request("POST", path, payload=payload)

    async def put(self, path: str, payload: Any) -> Any:
        return await self._request("PUT", path, payload=payload)

    async def get_paginated(
        self,
        path: str,
        result_key: str,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint and concatenate the items.

        Pages are requested one after another so results keep server order.
        """
        results: list[dict[str, Any]] = []
        page = 1
        total_pages = 1
        while page <= total_pages:
            page_params = {**(params or {}), "page": str(page), "per_page": str(PAGE_SIZE)}
            data = await self.get(path, page_params)
            decoded = self._extract_page(data, result_key)
            results.extend(decoded.items)
            total_pages = decoded.pages
            logger.debug(
                "GET %s page %d/%d: %d %s", path, page, total_pages, len(decoded.items), result_key
            )
            page += 1
        return results

    # -- OAuth token grants -------------------------------------------------

    async def exchange_code(self, code: str, redirect_uri: str) -> Session:
        """Trade an authorization code for a fresh session."""
        app = self._require_oauth_app()
        tokens = await self._token_grant(
            {
                "grant_type": "authorization_code",
                "client_id": app.client_id,
                "client_secret": app.client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
            }
        )
        self._apply_tokens(tokens)
        return self.session

    async def refresh_tokens(self) -> Session:
        """Rotate the session with the refresh token and persist the result.

        Raises:
            ConfigError: No refresh token or OAuth app credentials, or the
                rotated tokens could not be written to the config store.
            AuthError: The token endpoint rejected the refresh.
        """
        if not self.session.refresh_token:
            raise ConfigError("No refresh token in config. Run `freshtime setup` first.")
        app = self._require_oauth_app()
        tokens = await self._token_grant(
            {
                "grant_type": "refresh_token",
                "client_id": app.client_id,
                "client_secret": app.client_secret,
                "refresh_token": self.session.refresh_token,
            }
        )
        # The server has already rotated the tokens, so the session uses them
        # even if saving fails below.
        self._apply_tokens(tokens)
        if self._store is not None:
            try:
                self._store.save(self._config)
            except OSError as exc:
                logger.error("Refreshed tokens could not be saved: %s", exc)
                raise ConfigError(
                    f"Could not save refreshed tokens to the config file: {exc}. "
                    f"{REAUTH_HINT}"
                ) from exc
        logger.info("Access token refreshed")
        return self.session

    # -- generic request helper ---------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: Any = None,
        attempt: int = 1,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        token = self.session.access_token
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.request(
                method, url, params=params, json=payload, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("FreshBooks %s %s transport error: %s", method, path, exc)
            raise NetworkError(f"FreshBooks API unreachable: {exc}") from exc

        if response.status_code == 401:
            if attempt < _MAX_ATTEMPTS and await self._refresh_after_401(token):
                return await self._request(
                    method, path, params=params, payload=payload, attempt=attempt + 1
                )
            logger.warning("FreshBooks %s %s unauthorized (attempt %d)", method, path, attempt)
            raise AuthError(response.text)

        if not response.is_success:
            logger.warning(
                "FreshBooks %s %s returned status=%d", method, path, response.status_code
            )
            raise ApiError(response.status_code, response.reason_phrase, response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise ApiError(
                response.status_code, "Invalid JSON", response.text
            ) from exc

    async def _refresh_after_401(self, stale_token: str) -> bool:
        """Refresh once for a request that was rejected with *stale_token*.

        Returns True when the caller should retry.  A request that lost the
        race to another refresh just retries with the rotated token.  A
        failure to persist the rotated tokens propagates as ``ConfigError``.
        """
        async with self._refresh_lock:
            if self.session.access_token != stale_token:
                return True
            if not self.session.refresh_token or self._oauth_app is None:
                logger.info("Access token rejected and no refresh credentials are available")
                return False
            try:
                await self.refresh_tokens()
            except (AuthError, NetworkError) as exc:
                logger.warning("Token refresh failed: %s", exc)
                return False
            return True

    async def _token_grant(self, body: dict[str, str]) -> dict[str, Any]:
        url = f"{self._base_url}{TOKEN_PATH}"
        try:
            response = await self._http.post(
                url, json=body, headers={"Accept": "application/json"}
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != 200:
            logger.warning(
                "Token grant %s failed with status=%d", body.get("grant_type"), response.status_code
            )
            raise AuthError(response.text)
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise AuthError(response.text) from exc
        if not isinstance(data, dict) or not data.get("access_token"):
            raise AuthError("Token endpoint did not return an access token")
        return data

    def _apply_tokens(self, tokens: dict[str, Any]) -> None:
        self.session.access_token = str(tokens["access_token"])
        # Refresh tokens rotate; keep the old one only if none was issued.
        self.session.refresh_token = tokens.get("refresh_token") or self.session.refresh_token
        self._config.access_token = self.session.access_token
        self._config.refresh_token = self.session.refresh_token

    def _require_oauth_app(self) -> OAuthApp:
        if self._oauth_app is None:
            raise ConfigError(
                "Missing FRESHBOOKS_CLIENT_ID or FRESHBOOKS_CLIENT_SECRET environment variables."
            )
        return self._oauth_app

    # -- envelope decoding (exposed for testing) -----------------------------

    @staticmethod
    def _extract_page(data: Any, result_key: str) -> _Page:
        """Decode one page of a list response.

        Handles the two FreshBooks shapes:
        - Timetracking: ``{key: [...], "meta": {"pages": N}}``
        - Accounting:   ``{"response": {"result": {key: [...], "pages": N}}}``
        """
        page = BaseFreshBooksClient._decode_top_level(data, result_key)
        if page is None:
            page = BaseFreshBooksClient._decode_nested(data, result_key)
        return page

    @staticmethod
    def _decode_top_level(data: Any, result_key: str) -> _Page | None:
        if not isinstance(data, dict) or result_key not in data:
            return None
        meta = data.get("meta")
        pages = meta.get("pages") if isinstance(meta, dict) else None
        return _Page(
            items=BaseFreshBooksClient._dict_items(data[result_key]),
            pages=BaseFreshBooksClient._page_count(pages),
        )

    @staticmethod
    def _decode_nested(data: Any, result_key: str) -> _Page:
        response = data.get("response") if isinstance(data, dict) else None
        result = response.get("result") if isinstance(response, dict) else None
        if not isinstance(result, dict):
            return _Page(items=[], pages=1)
        return _Page(
            items=BaseFreshBooksClient._dict_items(result.get(result_key)),
            pages=BaseFreshBooksClient._page_count(result.get("pages")),
        )

    @staticmethod
    def _dict_items(value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @staticmethod
    def _page_count(value: Any) -> int:
        """Total pages from the envelope; missing or invalid means a single page."""
        try:
            pages = int(value)
        except (TypeError, ValueError):
            return 1
        return pages if pages >= 1 else 1
