"""Zoom webhook signature verification and endpoint URL validation."""

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_VERSION = "v0"


def _hmac_sha256_hex(secret: str, message: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def build_url_validation_response(plain_token: str, secret: str) -> dict[str, str]:
    """Answer Zoom's endpoint.url_validation (CRC) challenge."""
    return {
        "plainToken": plain_token,
        "encryptedToken": _hmac_sha256_hex(secret, plain_token),
    }


def sign_zoom_request(body: str, timestamp: str, secret: str) -> str:
    """Return the x-zm-signature value Zoom sends for this body and timestamp."""
    message = f"{SIGNATURE_VERSION}:{timestamp}:{body}"
    return f"{SIGNATURE_VERSION}={_hmac_sha256_hex(secret, message)}"


def verify_zoom_signature(
    body: str,
    signature: str | None,
    timestamp: str | None,
    secret: str,
    now_epoch_seconds: int,
    tolerance_seconds: int = 300,
) -> bool:
    """Verify a Zoom webhook request.

    Args:
        body: Raw request body, exactly as received
        signature: x-zm-signature header ("v0=<hex hmac>")
        timestamp: x-zm-request-timestamp header (epoch seconds)
        secret: Zoom webhook secret token
        now_epoch_seconds: Current time, epoch seconds
        tolerance_seconds: Maximum clock skew accepted for the timestamp

    Returns:
        True if the signature matches and the timestamp is fresh
    """
    if not signature or not timestamp:
        logger.error("Zoom webhook missing x-zm-signature or x-zm-request-timestamp headers")
        return False

    try:
        ts = int(timestamp)
    except ValueError:
        logger.error(f"Zoom webhook timestamp is not an integer: {timestamp}")
        return False

    if abs(now_epoch_seconds - ts) > tolerance_seconds:
        logger.error("Zoom webhook timestamp too old or in future")
        return False

    expected = sign_zoom_request(body, timestamp, secret)
    if not hmac.compare_digest(signature, expected):
        logger.error("Zoom webhook signature mismatch")
        return False

    return True
