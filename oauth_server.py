"""
Local OAuth callback server for browser-based sign-in.

Runs a small HTTPS server on localhost during ``freshtime setup``. The user
opens the FreshBooks authorize URL, approves the app, and FreshBooks
redirects back to ``/callback`` with an authorization code that this module
hands to the caller. FreshBooks only accepts https redirect URIs, so the
listener uses a throwaway self-signed certificate.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
import subprocess
import urllib.parse
from pathlib import Path

from aiohttp import web

from _constants import AUTHORIZE_URL, OAUTH_CALLBACK_PORT, OAUTH_REDIRECT_URI
from _errors import ConfigError
from config import OAuthApp

__all__ = ["authorize_url", "build_callback_app", "self_signed_context", "wait_for_auth_code"]

logger = logging.getLogger("freshtime.cli")

_RESULT_KEY = web.AppKey("result", asyncio.Future)


def authorize_url(app: OAuthApp, redirect_uri: str = OAUTH_REDIRECT_URI) -> str:
    return (
        AUTHORIZE_URL
        + "?"
        + urllib.parse.urlencode(
            {
                "client_id": app.client_id,
                "response_type": "code",
                "redirect_uri": redirect_uri,
            }
        )
    )


def _page_html(message: str, css_class: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>freshtime</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 420px; margin: 60px auto; padding: 20px; text-align: center; }}
    .ok {{ color: #0d6832; font-weight: 500; }}
    .err {{ color: #c5221f; }}
  </style>
</head>
<body>
  <p class="{css_class}">{message}</p>
</body>
</html>"""


async def _handle_callback(request: web.Request) -> web.Response:
    result: asyncio.Future[str] = request.app[_RESULT_KEY]
    code = request.query.get("code", "").strip()
    if not code:
        error = request.query.get("error_description") or request.query.get("error")
        if not result.done():
            result.set_exception(
                ConfigError(f"No authorization code received{f': {error}' if error else '.'}")
            )
        return web.Response(
            status=400,
            text=_page_html("Error: no code received. Close this tab and try again.", "err"),
            content_type="text/html",
        )

    if not result.done():
        result.set_result(code)
    return web.Response(
        text=_page_html("Done! You can close this tab.", "ok"),
        content_type="text/html",
    )


def build_callback_app(result: asyncio.Future[str]) -> web.Application:
    app = web.Application()
    app[_RESULT_KEY] = result
    app.router.add_get("/callback", _handle_callback)
    return app


def self_signed_context(directory: Path) -> ssl.SSLContext:
    """Create a one-day localhost certificate in *directory* and load it."""
    cert = directory / "cert.pem"
    key = directory / "key.pem"
    try:
        subprocess.run(
            [
                "openssl", "req", "-x509", "-newkey", "rsa:2048",
                "-keyout", str(key), "-out", str(cert),
                "-days", "1", "-nodes", "-subj", "/CN=localhost",
            ],
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ConfigError(
            "Failed to generate a self-signed certificate (is openssl installed?)."
        ) from exc
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(cert, key)
    return context


async def wait_for_auth_code(
    *,
    ssl_context: ssl.SSLContext | None,
    host: str = "localhost",
    port: int = OAUTH_CALLBACK_PORT,
    timeout: float = 300.0,
) -> str:
    """Serve ``/callback`` until FreshBooks redirects back, then return the code."""
    result: asyncio.Future[str] = asyncio.get_running_loop().create_future()
    runner = web.AppRunner(build_callback_app(result))
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, port, ssl_context=ssl_context)
        try:
            await site.start()
        except OSError as exc:
            raise ConfigError(f"Failed to listen on {host}:{port}: {exc}") from exc
        logger.debug("OAuth callback server listening on %s:%d", host, port)
        try:
            return await asyncio.wait_for(result, timeout)
        except TimeoutError as exc:
            raise ConfigError("Timed out waiting for authorization.") from exc
    finally:
        await runner.cleanup()
