"""HMAC signature validation for Slack request signing (``v0`` scheme)."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import hmac
import time
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

SIGNATURE_VERSION = "v0"
TIMESTAMP_MAX_AGE_SECONDS = 300
SIGNATURE_HEADER = "X-Slack-Signature"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.valid


def _ensure_bytes(value: str | BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return value.encode("utf-8")


def compute_signature(secret: str | BytesLike, timestamp: str | int, body: str | BytesLike) -> str:
    """Return the ``v0=<hex>`` signature Slack would send for ``body``."""

    base = b":".join(
        (SIGNATURE_VERSION.encode("ascii"), str(timestamp).encode("utf-8"), _ensure_bytes(body))
    )
    digest = hmac.new(_ensure_bytes(secret), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_request(
    *,
    signing_secret: str | BytesLike | None,
    signature: str | None,
    timestamp: str | None,
    body: str | BytesLike,
    now: float | None = None,
    max_age: int = TIMESTAMP_MAX_AGE_SECONDS,
) -> VerificationResult:
    """Check freshness and HMAC authenticity of a Slack request.

    The timestamp is checked first so stale deliveries are rejected before
    any HMAC work. ``body`` must be the raw bytes exactly as received.
    """

    if not signing_secret:
        return VerificationResult(False, "Signing secret is not configured")
    if not signature or not timestamp:
        return VerificationResult(False, "Missing signature or timestamp")

    try:
        request_ts = int(timestamp.strip())
    except ValueError:
        return VerificationResult(False, "Invalid timestamp format")

    current = int(time.time() if now is None else now)
    if abs(current - request_ts) > max_age:
        return VerificationResult(False, "Request timestamp too old (replay attack prevention)")

    expected = compute_signature(signing_secret, timestamp.strip(), body).encode("utf-8")
    provided = signature.strip().encode("utf-8")
    if len(provided) != len(expected):
        return VerificationResult(False, "Signature length mismatch")
    if not hmac.compare_digest(provided, expected):
        return VerificationResult(False, "Signature verification failed")
    return VerificationResult(True)


__all__ = [
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "TIMESTAMP_MAX_AGE_SECONDS",
    "VerificationResult",
    "compute_signature",
    "verify_slack_request",
]
