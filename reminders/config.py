"""Configuration management for the Notion→Slack reminder job."""

from __future__ import annotations

import re
from typing import Literal, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, HttpUrl, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .models import DmTarget, parse_dm_targets

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()


def _split_list(value: str | Sequence[str] | None) -> list[str]:
    """Turn comma, semicolon or whitespace separated env strings into cleaned lists."""
    if value is None:
        return []
    if isinstance(value, str):
        items = re.split(r"[;,\s]+", value)
    else:
        items = list(value)
    return [item.strip() for item in items if item and item.strip()]


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    notion_token: str = Field(..., alias="NOTION_TOKEN")
    notion_database_id: str = Field(..., alias="NOTION_DATABASE_ID")
    notion_prop_title: str = Field("Name", alias="NOTION_PROP_TITLE")
    notion_prop_due: str = Field("Next due", alias="NOTION_PROP_DUE")
    notion_prop_status: str = Field("Status", alias="NOTION_PROP_STATUS")
    notion_prop_category: str = Field("Type", alias="NOTION_PROP_CATEGORY")
    notion_prop_environment: str = Field("Environment", alias="NOTION_PROP_ENVIRONMENT")
    notion_status_property_type: Literal["auto", "select", "status"] = Field(
        "auto", alias="NOTION_STATUS_PROPERTY_TYPE"
    )

    slack_webhook_url: HttpUrl | None = Field(None, alias="SLACK_WEBHOOK_URL")
    slack_bot_token: str | None = Field(None, alias="SLACK_BOT_TOKEN")
    slack_channel_id: str | None = Field(None, alias="SLACK_CHANNEL_ID")
    slack_dm_user_ids_raw: str = Field("", alias="SLACK_DM_USER_IDS")

    lookahead_days: int = Field(7, ge=0, alias="LOOKAHEAD_DAYS")
    post_when_empty: bool = Field(True, alias="POST_WHEN_EMPTY")
    done_status_name: str = Field("Done", alias="DONE_STATUS_NAME")
    reminder_timezone: str = Field("UTC", alias="REMINDER_TIMEZONE")
    http_timeout: float = Field(30.0, gt=0, alias="HTTP_TIMEOUT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "slack_webhook_url",
        "slack_bot_token",
        "slack_channel_id",
        mode="before",
    )
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator(
        "lookahead_days",
        "post_when_empty",
        "done_status_name",
        "reminder_timezone",
        "notion_status_property_type",
        "http_timeout",
        "log_level",
        mode="before",
    )
    @classmethod
    def _empty_str_to_default(cls, value, info):
        if isinstance(value, str) and value.strip() == "":
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("notion_token", "notion_database_id", mode="before")
    @classmethod
    def _strip_required(cls, value):
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValueError("must not be empty")
            return stripped
        return value

    @field_validator("reminder_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone '{value}'") from exc
        return value

    @model_validator(mode="after")
    def _validate_destinations(self):
        # Raises InvalidDmTargetError for malformed ids before anything is sent.
        targets = self.dm_targets
        if targets and not self.slack_bot_token:
            raise ValueError("SLACK_BOT_TOKEN is required when SLACK_DM_USER_IDS is set.")
        if not (self.slack_webhook_url or self.bot_channel_configured or targets):
            raise ValueError(
                "No Slack destination configured: set SLACK_WEBHOOK_URL, "
                "SLACK_BOT_TOKEN with SLACK_CHANNEL_ID, or SLACK_DM_USER_IDS."
            )
        return self

    @property
    def dm_targets(self) -> list[DmTarget]:
        """DM recipients parsed into conversation and user targets, in configured order."""
        return parse_dm_targets(_split_list(self.slack_dm_user_ids_raw))

    @property
    def bot_channel_configured(self) -> bool:
        return bool(self.slack_bot_token and self.slack_channel_id)

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.reminder_timezone)


def _env_name(loc: tuple) -> str:
    if not loc:
        return "configuration"
    name = str(loc[0])
    field = Settings.model_fields.get(name)
    if field is not None and field.alias:
        return field.alias
    return name.upper()


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, raising ConfigError naming each bad key."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            if error["type"] == "missing":
                problems.append(f"Missing required env var: {_env_name(error['loc'])}")
            elif error["loc"]:
                problems.append(f"Invalid value for {_env_name(error['loc'])}: {error['msg']}")
            else:
                problems.append(error["msg"].removeprefix("Value error, "))
        raise ConfigError("; ".join(problems)) from exc
