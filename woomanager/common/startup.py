"""Startup-time helpers for safe config logging."""

import os

from woomanager.common.logging import logger

# Values never printed, only whether they are set.
SECRET_KEYS = frozenset(
    {
        "BASEROW_TOKEN",
        "RAZORPAY_ENC_KEY",
        "VAPID_PRIVATE_KEY",
        "JWT_SECRET",
        "REDIS_URL",
        "DATABASE_URL",
    }
)


def describe_env(name: str, secret_keys: frozenset[str] = SECRET_KEYS) -> str:
    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if name in secret_keys:
        return "<redacted>" if value else "<empty>"
    return value


def log_startup_config(service_name: str, keys: list[str], secret_keys: frozenset[str] = SECRET_KEYS) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    config = {"service": service_name}
    config.update({key: describe_env(key, secret_keys) for key in keys})
    logger.info("startup_config=%s", config)
