"""Thin wrapper utilities around the Slack WebClient."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from slack_sdk import WebClient


class SlackClient:
    """Encapsulate Slack WebClient interactions for easier testing."""

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        return self._client

    def identify(self) -> Mapping[str, Any]:
        """Check the bot token and return the ``auth.test`` identity."""

        return self._client.auth_test()

    def fetch_channel(self, channel_id: str) -> Mapping[str, Any]:
        """Return the ``conversations.info`` channel object for *channel_id*."""

        response = self._client.conversations_info(channel=channel_id)
        return response.get("channel") or {}

    def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Post a message with Block Kit content to a Slack channel."""

        return self._client.chat_postMessage(channel=channel, text=text, blocks=list(blocks))

    def update_message(
        self,
        *,
        channel: str,
        ts: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Replace the content of an existing Slack message."""

        return self._client.chat_update(channel=channel, ts=ts, text=text, blocks=list(blocks))

    def post_ephemeral(self, *, channel: str, user: str, text: str) -> Mapping[str, Any]:
        """Reply privately to *user* inside *channel*."""

        return self._client.chat_postEphemeral(channel=channel, user=user, text=text)
