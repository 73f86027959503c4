"""Shared fixtures: a clean environment and Notion page builders."""

from __future__ import annotations

import pytest

from reminders.config import Settings

ENV_KEYS = [
    "NOTION_TOKEN",
    "NOTION_DATABASE_ID",
    "NOTION_PROP_TITLE",
    "NOTION_PROP_DUE",
    "NOTION_PROP_STATUS",
    "NOTION_PROP_CATEGORY",
    "NOTION_PROP_ENVIRONMENT",
    "NOTION_STATUS_PROPERTY_TYPE",
    "SLACK_WEBHOOK_URL",
    "SLACK_BOT_TOKEN",
    "SLACK_CHANNEL_ID",
    "SLACK_DM_USER_IDS",
    "LOOKAHEAD_DAYS",
    "POST_WHEN_EMPTY",
    "DONE_STATUS_NAME",
    "REMINDER_TIMEZONE",
    "HTTP_TIMEOUT",
    "LOG_LEVEL",
]

DATABASE_ID = "0123456789abcdef0123456789abcdef"
WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def make_settings(**overrides) -> Settings:
    values = {
        "NOTION_TOKEN": "secret_test",
        "NOTION_DATABASE_ID": DATABASE_ID,
        "SLACK_WEBHOOK_URL": WEBHOOK_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_page(
    title: str | None = "Rotate keys",
    due: str | None = "2024-01-02",
    status: str | None = None,
    status_kind: str = "status",
    category: str | None = None,
    environment: str | None = None,
) -> dict:
    properties: dict = {}
    if title is not None:
        properties["Name"] = {
            "type": "title",
            "title": [{"type": "text", "plain_text": title}],
        }
    if due is not None:
        properties["Next due"] = {"type": "date", "date": {"start": due, "end": None}}
    if status is not None:
        properties["Status"] = {"type": status_kind, status_kind: {"name": status}}
    if category is not None:
        properties["Type"] = {"type": "select", "select": {"name": category}}
    if environment is not None:
        properties["Environment"] = {"type": "select", "select": {"name": environment}}
    return {"object": "page", "id": f"page-{title}-{due}", "properties": properties}
