"""Exceptions raised by the reminder job."""

from __future__ import annotations


class ReminderError(Exception):
    """Base exception for reminder job failures."""

    # DeliveryOutcome accumulated before the failure, set by the dispatcher.
    outcome = None


class ConfigError(ReminderError):
    """Required configuration is missing or invalid."""

    pass


class SourceQueryError(ReminderError):
    """The Notion database query failed."""

    pass


class DeliveryError(ReminderError):
    """A Slack channel post or direct message could not be delivered."""

    pass


class InvalidDmTargetError(ReminderError):
    """A DM recipient id is neither a conversation id nor a user id."""

    def __init__(self, raw: str) -> None:
        super().__init__(
            f"Invalid Slack DM target '{raw}': expected a user id (U...) or a DM conversation id (D...)"
        )
        self.raw = raw
