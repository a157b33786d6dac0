"""
Webhook Signature Verification
HMAC-SHA256 over the raw request body, hex encoded
"""
import hashlib
import hmac
from typing import Optional, Union


SIGNATURE_HEADER = "x-elevenlabs-signature"


def compute_signature(body: Union[bytes, str], secret: str) -> str:
    """Hex HMAC-SHA256 of the raw body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: Union[bytes, str], signature: Optional[str], secret: str) -> bool:
    """
    Check a signature header against the body.

    Comparison is constant time; a missing header never verifies.
    """
    if not signature:
        return False
    expected = compute_signature(body, secret)
    return hmac.compare_digest(signature.strip().lower().encode("utf-8"), expected.encode("utf-8"))
