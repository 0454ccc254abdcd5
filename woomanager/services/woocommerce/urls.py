"""Store URL normalization helpers."""

import re

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def clean_url(url: str) -> str:
    """Full base URL for API calls (`https://` added when missing)."""

    cleaned = url.strip().rstrip("/")
    if not cleaned.lower().startswith("http"):
        cleaned = f"https://{cleaned}"
    return cleaned


def extract_domain(url: str) -> str:
    """Host part only: no scheme, no path."""

    cleaned = _SCHEME.sub("", url.strip().rstrip("/"))
    return cleaned.split("/")[0]


def normalize_store_key(url: str) -> str:
    """Cache identity for a store: scheme and trailing slashes stripped."""

    return _SCHEME.sub("", url.strip()).rstrip("/")
