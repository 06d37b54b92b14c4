"""Pydantic-based configuration helpers for the incentive approval bridge."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_PORT = 10000
DEFAULT_AIRTABLE_API_URL = "https://api.airtable.com/v0"


class AppSettings(BaseModel):
    """Settings required to reach Slack, Airtable and serve the webhook."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: str = Field(..., alias="SLACK_SIGNING_SECRET")
    channel_id: str = Field(..., alias="SLACK_CHANNEL_ID")
    airtable_token: str = Field(..., alias="AIRTABLE_TOKEN")
    airtable_base_id: str = Field(..., alias="AIRTABLE_BASE_ID")
    airtable_table_name: str = Field(..., alias="AIRTABLE_TABLE_NAME")
    webhook_secret: str = Field(..., alias="WEBHOOK_SECRET")
    port: int = Field(DEFAULT_PORT, alias="PORT")
    airtable_api_url: str = Field(DEFAULT_AIRTABLE_API_URL, alias="AIRTABLE_API_URL")
    airtable_timeout: float = Field(10.0, alias="AIRTABLE_TIMEOUT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator(
        "bot_token",
        "signing_secret",
        "channel_id",
        "airtable_token",
        "airtable_base_id",
        "airtable_table_name",
        "webhook_secret",
    )
    @classmethod
    def _ensure_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Value must not be blank")
        return value.strip()

    @field_validator("port")
    @classmethod
    def _ensure_valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("PORT must be between 1 and 65535")
        return value

    @field_validator("airtable_timeout")
    @classmethod
    def _ensure_positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("AIRTABLE_TIMEOUT must be greater than zero")
        return value

    @field_validator("airtable_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of offending env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        invalid = [str(error["loc"][0]) for error in exc.errors() if error["type"] != "missing"]
        if missing:
            message = f"Missing required environment variables: {_format_missing(missing)}"
        else:
            message = f"Invalid environment variables: {_format_missing(invalid)}"
        raise RuntimeError(message) from exc
