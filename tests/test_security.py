"""Tests for webhook secret and Slack signature checks."""

from pathlib import Path
import sys
from types import SimpleNamespace

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from incentive_bridge import security  # noqa: E402


def test_webhook_secret_must_match_exactly():
    assert security.is_valid_webhook_secret("hook-secret", "hook-secret")
    assert not security.is_valid_webhook_secret("hook-secret", "hook-secret ")
    assert not security.is_valid_webhook_secret("hook-secret", "")
    assert not security.is_valid_webhook_secret("hook-secret", None)


def test_signature_round_trip(monkeypatch):
    monkeypatch.setattr(security, "time", SimpleNamespace(time=lambda: 1700000000))
    signature = security.compute_signature("signing-secret", "1700000000", "payload=1")

    assert signature.startswith("v0=")
    assert security.is_valid_slack_request(
        signing_secret="signing-secret",
        timestamp="1700000000",
        body="payload=1",
        signature=signature,
    )


def test_tampered_body_is_rejected(monkeypatch):
    monkeypatch.setattr(security, "time", SimpleNamespace(time=lambda: 1700000000))
    signature = security.compute_signature("signing-secret", "1700000000", "payload=1")

    assert not security.is_valid_slack_request(
        signing_secret="signing-secret",
        timestamp="1700000000",
        body="payload=2",
        signature=signature,
    )


def test_missing_or_malformed_timestamp_is_rejected():
    assert not security.is_valid_slack_request(
        signing_secret="signing-secret", timestamp="", body="{}", signature="v0=abc"
    )
    assert not security.is_valid_slack_request(
        signing_secret="signing-secret", timestamp="soon", body="{}", signature="v0=abc"
    )
