"""Helpers for safe logging.

The etcd URI may carry basic-auth credentials, and advertisement payloads can
be arbitrarily long.  This module keeps both out of the logs.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit


def redact_url(url: str) -> str:
    """Return *url* with any password replaced by ``<redacted>``."""
    parts = urlsplit(url)
    if parts.password is None:
        return url

    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    netloc = f"{parts.username or ''}:<redacted>@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def truncate_for_log(value: str | None, *, max_string: int = 256) -> str | None:
    """Shorten *value* for debug logs."""
    if value is None:
        return None
    if len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value
