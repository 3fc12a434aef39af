"""
Environment-backed settings.

Everything is read lazily so the app factory and tests can run without a
populated environment.
"""

from __future__ import annotations

import os
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

DEFAULT_PORT = 2565


def _sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq's `sslmode` when given as a query parameter.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def auth_token() -> str:
    token = os.environ.get("AUTH_TOKEN", "")
    if not token:
        raise RuntimeError("AUTH_TOKEN is not set.")
    return token


def listen_port() -> int:
    """
    Port to bind. Accepts `2565` as well as the `:2565` address form.
    """
    raw = os.environ.get("PORT", "").strip().lstrip(":")
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"PORT is not a valid port: {raw!r}") from exc


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
