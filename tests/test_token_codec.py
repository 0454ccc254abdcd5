"""Correlation token encode/decode and URL helpers."""

import pytest

from woomanager.common.errors import ValidationError
from woomanager.services.sso.token_codec import (
    CorrelationToken,
    candidate_tokens,
    decode_correlation_token,
    encode_correlation_token,
    handle_from_token,
)
from woomanager.services.woocommerce.urls import clean_url, extract_domain, normalize_store_key


def test_decode_recovers_handle_and_domain():
    token = encode_correlation_token("pwa-user-1", "shop.example.com")

    assert token == "pwa-user-1__shop.example.com"
    decoded = decode_correlation_token(token)
    assert decoded.app_user_id == "pwa-user-1"
    assert decoded.domain == "shop.example.com"


def test_decode_splits_on_first_separator_only():
    decoded = decode_correlation_token("abc__weird__host.example.com")

    assert decoded.app_user_id == "abc"
    assert decoded.domain == "weird__host.example.com"


def test_encode_rejects_handle_containing_separator():
    with pytest.raises(ValidationError):
        encode_correlation_token("bad__handle", "shop.example.com")


def test_well_formed_token_has_a_single_candidate():
    assert candidate_tokens("pwa-user-1__shop.example.com") == [CorrelationToken("pwa-user-1", "shop.example.com")]


@pytest.mark.parametrize("token", ["pwa-user-1shop.example.com", "pwa-user-1|shop.example.com"])
def test_token_without_separator_lists_every_hostname_split(token):
    candidates = candidate_tokens(token)

    assert CorrelationToken("pwa-user-1", "shop.example.com") in candidates
    assert all(c.app_user_id and "|" not in c.app_user_id for c in candidates)
    assert len({c.app_user_id for c in candidates}) == len(candidates)


def test_token_without_any_hostname_has_no_candidates():
    assert candidate_tokens("no-domain-here") == []
    with pytest.raises(ValidationError):
        candidate_tokens("   ")


@pytest.mark.parametrize(
    "token", ["", "   ", "no-domain-here", "pwa-user-1shop.example.com", "__shop.example.com", "handle__"]
)
def test_unusable_tokens_raise(token):
    with pytest.raises(ValidationError):
        decode_correlation_token(token)


def test_handle_from_token_accepts_bare_handles():
    assert handle_from_token("abc__shop.example.com") == "abc"
    assert handle_from_token("abc") == "abc"


def test_url_helpers():
    assert clean_url("shop.example.com/") == "https://shop.example.com"
    assert clean_url("http://shop.example.com") == "http://shop.example.com"
    assert extract_domain("https://shop.example.com/store/") == "shop.example.com"
    assert normalize_store_key("https://shop.example.com/") == normalize_store_key("shop.example.com")
