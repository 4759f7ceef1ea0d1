"""Utility helpers for string normalization and asset path handling."""

from __future__ import annotations

import re

from .config import STATIC_URL_PREFIX

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
YEAR_TOKEN = "{year}"


def slugify(value: str, fallback: str = "itinerary") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def strip_static_prefix(raw: str, prefix: str = STATIC_URL_PREFIX) -> str:
    """Return the path of an asset relative to the static root.

    Accepts "img/a.jpg", "static/img/a.jpg", "/static/img/a.jpg" and
    "/img/a.jpg" alike.
    """
    clean = (raw or "").strip().replace("\\", "/")
    bare_prefix = prefix.strip("/") + "/"
    if clean.startswith("/" + bare_prefix):
        clean = clean[len(bare_prefix) + 1 :]
    elif clean.startswith(bare_prefix):
        clean = clean[len(bare_prefix) :]
    return clean.lstrip("/")


def static_url(raw: str, prefix: str = STATIC_URL_PREFIX) -> str:
    """Re-root an asset path under the static URL prefix; idempotent."""
    relative = strip_static_prefix(raw, prefix)
    if not relative:
        return ""
    return prefix.rstrip("/") + "/" + relative


def resolve_year(text: str, year: int) -> str:
    return text.replace(YEAR_TOKEN, str(year))
