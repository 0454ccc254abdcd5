"""Correlation token carried through the WooCommerce `wc-auth` redirect.

WooCommerce hands back a single opaque `user_id` string, so the store handle
and the target domain travel together as `<app_user_id>__<domain>`.
"""

import re
from dataclasses import dataclass

from woomanager.common.errors import ValidationError

SEPARATOR = "__"

_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
# `label(.label)+` with an alphabetic TLD of at least two characters.
_DOMAIN = re.compile(rf"(?:{_LABEL}\.)+[A-Za-z]{{2,}}")
_HANDLE_JUNK = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True)
class CorrelationToken:
    app_user_id: str
    domain: str


def encode_correlation_token(app_user_id: str, domain: str) -> str:
    if not app_user_id or not domain:
        raise ValidationError("app_user_id and domain are required")
    if SEPARATOR in app_user_id:
        raise ValidationError(f"app_user_id must not contain {SEPARATOR!r}")
    return f"{app_user_id}{SEPARATOR}{domain}"


def decode_correlation_token(token: str) -> CorrelationToken:
    """Split a well-formed `<handle>__<domain>` token on its first separator."""

    token = (token or "").strip()
    if not token:
        raise ValidationError("correlation token is empty")
    if SEPARATOR not in token:
        raise ValidationError("correlation token has no separator")

    handle, domain = token.split(SEPARATOR, 1)
    if not handle or not domain:
        raise ValidationError("correlation token is missing a handle or domain")
    return CorrelationToken(app_user_id=handle, domain=domain)


def candidate_tokens(token: str) -> list[CorrelationToken]:
    """Every plausible reading of a token, shortest handle first.

    A well-formed token has exactly one reading. A token that lost its
    separator (`<handle><domain>` or `<handle>|<domain>`) yields one candidate
    per position where the rest of the string is a complete hostname; only a
    store lookup can tell which handle is real.
    """

    token = (token or "").strip()
    if not token:
        raise ValidationError("correlation token is empty")
    if SEPARATOR in token:
        return [decode_correlation_token(token)]

    candidates = []
    seen = set()
    for start in range(1, len(token)):
        domain = token[start:]
        if not _DOMAIN.fullmatch(domain):
            continue
        handle = _HANDLE_JUNK.sub("", token[:start])
        if handle and handle not in seen:
            seen.add(handle)
            candidates.append(CorrelationToken(app_user_id=handle, domain=domain))
    return candidates


def handle_from_token(value: str) -> str:
    """Handle part of a token, or the value itself when it is a bare handle."""

    return value.split(SEPARATOR, 1)[0] if SEPARATOR in value else value
