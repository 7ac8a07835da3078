"""URL whitelisting for href/src attributes and link tokens."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

ALLOWED_PROTOCOL_PREFIXES = ("http://", "https://", "mailto:")
ALLOWED_SCHEMES = frozenset({"http", "https", "mailto"})


def is_valid_protocol(url: Optional[str]) -> bool:
    """Return True when ``url`` starts with an allowed protocol, ignoring case.

    Everything else is rejected, including ``javascript:``, ``data:``,
    ``vbscript:`` and ``file:`` URLs as well as empty values.
    """

    if not url or not isinstance(url, str):
        return False
    return url.strip().lower().startswith(ALLOWED_PROTOCOL_PREFIXES)


def is_valid_url(url: Optional[str], require_https: bool = False) -> bool:
    """Stricter check: ``url`` must parse as a well-formed absolute URL.

    With ``require_https`` the scheme has to be exactly ``https``.
    """

    if not url or not isinstance(url, str):
        return False
    if url != url.strip() or any(ch.isspace() for ch in url):
        return False

    try:
        parts = urlsplit(url)
    except ValueError:
        return False

    scheme = parts.scheme.lower()
    if require_https:
        if scheme != "https":
            return False
    elif scheme not in ALLOWED_SCHEMES:
        return False

    if scheme == "mailto":
        return bool(parts.path)

    try:
        # .port raises on a malformed port such as "host:abc"
        _ = parts.port
    except ValueError:
        return False
    return bool(parts.hostname)
