"""Unit tests for the Slack WebClient wrapper."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from incentive_bridge.slack_client import SlackClient  # noqa: E402
from fakes import DummyWebClient  # noqa: E402


def test_requires_token_or_client():
    with pytest.raises(ValueError):
        SlackClient()


def test_post_message_uses_underlying_client():
    dummy = DummyWebClient()
    client = SlackClient(client=dummy)

    response = client.post_message(channel="C123", text="hello", blocks=({"type": "section"},))

    assert dummy.calls == [
        ("post", {"channel": "C123", "text": "hello", "blocks": [{"type": "section"}]}),
    ]
    assert response["ts"] == "1700000000.000100"
    assert client.client is dummy


def test_update_message_uses_underlying_client():
    dummy = DummyWebClient()
    client = SlackClient(client=dummy)

    client.update_message(channel="C123", ts="123.456", text="updated", blocks=[{"type": "header"}])

    assert dummy.calls[-1] == (
        "update",
        {"channel": "C123", "ts": "123.456", "text": "updated", "blocks": [{"type": "header"}]},
    )


def test_post_ephemeral_targets_reviewer():
    dummy = DummyWebClient()

    SlackClient(client=dummy).post_ephemeral(channel="C123", user="U1", text="done")

    assert dummy.ephemerals == [{"channel": "C123", "user": "U1", "text": "done"}]


def test_fetch_channel_returns_channel_object():
    dummy = DummyWebClient(channel={"id": "C123", "is_channel": True})

    channel = SlackClient(client=dummy).fetch_channel("C123")

    assert channel == {"id": "C123", "is_channel": True}
    assert dummy.calls == [("channel_info", {"channel": "C123"})]


def test_identify_calls_auth_test():
    dummy = DummyWebClient()

    identity = SlackClient(client=dummy).identify()

    assert identity["user_id"] == "UBOT"
