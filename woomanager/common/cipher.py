"""AES-256-GCM sealing for secondary credentials stored in the record store.

Stored format is base64(nonce(12) || tag(16) || ciphertext) so a single text
column holds everything needed to decrypt.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from woomanager.common.config import settings
from woomanager.common.errors import ConfigurationError, IntegrityError

NONCE_BYTES = 12
TAG_BYTES = 16
KEY_BYTES = 32


def _resolve_key(key: str | None) -> bytes:
    # Read at call time so the service boots without the secondary-credential feature.
    raw = (key if key is not None else settings.razorpay_enc_key).strip()
    if not raw:
        raise ConfigurationError("RAZORPAY_ENC_KEY is not set")
    if len(raw) == KEY_BYTES * 2:
        try:
            decoded = bytes.fromhex(raw)
        except ValueError:
            decoded = b""
        if len(decoded) == KEY_BYTES:
            return decoded
    try:
        decoded = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("RAZORPAY_ENC_KEY must be 64 hex chars or base64") from exc
    if len(decoded) != KEY_BYTES:
        raise ConfigurationError("RAZORPAY_ENC_KEY must decode to 32 bytes")
    return decoded


def encrypt(plaintext: str, key: str | None = None) -> str:
    """Seal `plaintext` with a fresh random nonce."""

    aes = AESGCM(_resolve_key(key))
    nonce = os.urandom(NONCE_BYTES)
    sealed = aes.encrypt(nonce, plaintext.encode("utf-8"), None)
    # AESGCM appends the tag; the stored layout keeps it in front of the ciphertext.
    ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
    return base64.b64encode(nonce + tag + ciphertext).decode("ascii")


def decrypt(blob: str, key: str | None = None) -> str:
    """Open a sealed blob, raising `IntegrityError` when it does not verify."""

    aes = AESGCM(_resolve_key(key))
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise IntegrityError("sealed secret is not valid base64") from exc
    if len(raw) < NONCE_BYTES + TAG_BYTES:
        raise IntegrityError("sealed secret is truncated")
    nonce = raw[:NONCE_BYTES]
    tag = raw[NONCE_BYTES:NONCE_BYTES + TAG_BYTES]
    ciphertext = raw[NONCE_BYTES + TAG_BYTES:]
    try:
        plaintext = aes.decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as exc:
        raise IntegrityError("sealed secret failed authentication") from exc
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise IntegrityError("sealed secret is not valid UTF-8") from exc


def generate_key() -> str:
    """Return a new 256-bit key as 64 hex characters."""

    return AESGCM.generate_key(bit_length=256).hex()
