"""Publishing approval cards for records announced by the webhook."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from slack_sdk.errors import SlackApiError
import structlog

from .cards import build_card_message, render_card
from .outcomes import best_effort
from .record_store import AirtableClient, ApprovalStatus
from .slack_client import SlackClient

_CONVERSATION_FLAGS = ("is_channel", "is_group", "is_im", "is_mpim")


class ChannelUnavailableError(Exception):
    """The destination channel cannot be found or cannot receive messages."""


@dataclass(frozen=True)
class PostedCard:
    channel_id: str
    ts: str


def _is_message_capable(channel: Mapping[str, Any]) -> bool:
    if not channel or channel.get("is_archived"):
        return False
    return any(channel.get(flag) for flag in _CONVERSATION_FLAGS)


def resolve_channel(slack: SlackClient, channel_id: str) -> Mapping[str, Any]:
    """Look up *channel_id* and make sure a card can be posted there."""

    try:
        channel = slack.fetch_channel(channel_id)
    except SlackApiError as exc:
        error_code = exc.response.get("error") if getattr(exc, "response", None) else str(exc)
        structlog.get_logger().warning("channel_lookup_failed", channel=channel_id, error=error_code)
        raise ChannelUnavailableError(channel_id) from exc

    if not _is_message_capable(channel):
        raise ChannelUnavailableError(channel_id)
    return channel


def publish_approval_card(
    *,
    store: AirtableClient,
    slack: SlackClient,
    channel_id: str,
    record_id: str,
) -> PostedCard:
    """Fetch *record_id*, mark it pending and post its approval card.

    Raises :class:`~incentive_bridge.record_store.RecordStoreError` when the
    record cannot be read, :class:`ChannelUnavailableError` when the channel is
    unusable and :class:`~slack_sdk.errors.SlackApiError` when posting fails.
    The pending status write is advisory and never interrupts the flow.
    """

    log = structlog.get_logger().bind(record_id=record_id, channel=channel_id)

    fields = store.fields(record_id)
    log.info("record_fetched", field_count=len(fields))

    best_effort("set_pending", store.set_status, record_id, ApprovalStatus.PENDING).discard()

    resolve_channel(slack, channel_id)

    payload = build_card_message(render_card(record_id, fields))
    response = slack.post_message(channel=channel_id, text=payload["text"], blocks=payload["blocks"])

    posted = PostedCard(channel_id=response.get("channel") or channel_id, ts=response.get("ts") or "")
    log.info("card_posted", ts=posted.ts)
    return posted
