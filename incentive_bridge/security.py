"""Request authentication for the webhook and Slack interaction endpoints."""

from __future__ import annotations

import hmac
import time
from hashlib import sha256

WEBHOOK_SECRET_HEADER = "x-webhook-secret"
SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes


def is_valid_webhook_secret(expected: str, provided: str | None) -> bool:
    """Compare the shared webhook secret in constant time."""

    if not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def compute_signature(signing_secret: str, timestamp: str, body: str) -> str:
    """Return the Slack `v0=` signature for *body* sent at *timestamp*."""

    basestring = f"{VERSION}:{timestamp}:{body}".encode("utf-8")
    digest = hmac.new(signing_secret.encode("utf-8"), basestring, sha256).hexdigest()
    return f"{VERSION}={digest}"


def is_valid_slack_request(
    *, signing_secret: str, timestamp: str, body: str, signature: str, tolerance: int = DEFAULT_TOLERANCE
) -> bool:
    """Validate Slack signature and timestamp to guard against replayed interactions."""

    if not timestamp or not signature:
        return False

    try:
        request_ts = int(timestamp)
    except (TypeError, ValueError):
        return False

    if abs(int(time.time()) - request_ts) > tolerance:
        return False

    return hmac.compare_digest(compute_signature(signing_secret, timestamp, body), signature)
