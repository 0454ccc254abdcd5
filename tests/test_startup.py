"""Startup config logging keeps secrets out of the log."""

from woomanager.common.startup import describe_env


def test_known_secrets_are_redacted(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret-value")
    monkeypatch.setenv("BASEROW_TOKEN", "")
    monkeypatch.setenv("VAPID_PUBLIC_KEY", "BPublicKey")
    monkeypatch.delenv("REDIS_URL", raising=False)

    assert describe_env("JWT_SECRET") == "<redacted>"
    assert describe_env("BASEROW_TOKEN") == "<empty>"
    assert describe_env("VAPID_PUBLIC_KEY") == "BPublicKey"
    assert describe_env("REDIS_URL") == "<unset>"


def test_custom_secret_set(monkeypatch):
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://relay.example.com")

    assert describe_env("PUBLIC_BASE_URL", frozenset({"PUBLIC_BASE_URL"})) == "<redacted>"
