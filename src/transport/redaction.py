"""Masking helpers for anything the HTTP layer writes to logs."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlsplit

MASK = "****"
SNIPPET_LIMIT = 4096  # bytes

_SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "set-cookie"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy ``headers`` with credential values masked.

    ``Authorization: Bearer <token>`` becomes ``Bearer ****`` so the scheme
    stays visible.
    """
    redacted: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() not in _SENSITIVE_HEADERS:
            redacted[name] = value
            continue
        scheme, _, credential = value.partition(" ")
        redacted[name] = f"{scheme} {MASK}" if credential else MASK
    return redacted


def mask_url(url: str) -> str:
    """Keep only scheme and host: ``https://host/****``."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return MASK
    return f"{parts.scheme}://{parts.netloc}/{MASK}"


def body_snippet(content: bytes, limit: int = SNIPPET_LIMIT) -> str:
    """Decode at most ``limit`` bytes of a response body for diagnostics."""
    return content[:limit].decode("utf-8", errors="replace")
