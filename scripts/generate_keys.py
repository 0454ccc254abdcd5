"""Print fresh values for RAZORPAY_ENC_KEY and the VAPID key pair."""

import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from woomanager.common.cipher import generate_key


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def vapid_keypair() -> tuple[str, str]:
    """(public, private) in the base64url form browsers and pywebpush accept."""

    private_key = ec.generate_private_key(ec.SECP256R1())
    private_value = private_key.private_numbers().private_value.to_bytes(32, "big")
    public_point = private_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return _b64url(public_point), _b64url(private_value)


def main() -> None:
    public_key, private_key = vapid_keypair()
    print(f"RAZORPAY_ENC_KEY={generate_key()}")
    print(f"VAPID_PUBLIC_KEY={public_key}")
    print(f"VAPID_PRIVATE_KEY={private_key}")


if __name__ == "__main__":
    main()
