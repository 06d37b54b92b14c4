"""Process-scoped clients shared by the webhook and interaction handlers."""

from __future__ import annotations

from dataclasses import dataclass

from slack_sdk import WebClient
import structlog

from . import background
from .config import AppSettings
from .record_store import AirtableClient
from .slack_client import SlackClient


@dataclass
class BridgeResources:
    """Clients constructed once per process and injected into handlers."""

    settings: AppSettings
    store: AirtableClient
    slack: SlackClient

    @classmethod
    def open(cls, settings: AppSettings, *, web_client: WebClient | None = None) -> "BridgeResources":
        store = AirtableClient(
            token=settings.airtable_token,
            base_id=settings.airtable_base_id,
            table_name=settings.airtable_table_name,
            api_url=settings.airtable_api_url,
            timeout=settings.airtable_timeout,
        )
        if web_client is not None:
            slack = SlackClient(client=web_client)
        else:
            slack = SlackClient(token=settings.bot_token)
        return cls(settings=settings, store=store, slack=slack)

    def login(self) -> str:
        """Verify the bot token against Slack and return the bot's user id."""

        identity = self.slack.identify()
        structlog.get_logger().info(
            "logged_in",
            bot_user_id=identity.get("user_id"),
            bot_name=identity.get("user"),
            team=identity.get("team"),
        )
        return identity.get("user_id", "")

    def close(self) -> None:
        """Release the HTTP session and stop the interaction worker pool."""

        self.store.close()
        background.shutdown()
