"""Typed containers shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Union

from .errors import InvalidDmTargetError


@dataclass(frozen=True)
class ExtractedItem:
    """Fields of one Notion page that the digest renders."""

    title: str
    due_date: Optional[date]
    status: str
    category: str
    environment: str


@dataclass(frozen=True)
class ConversationTarget:
    """An existing Slack DM conversation (id starts with ``D``)."""

    conversation_id: str


@dataclass(frozen=True)
class UserTarget:
    """A Slack user whose DM conversation is opened before posting (id starts with ``U``)."""

    user_id: str


DmTarget = Union[ConversationTarget, UserTarget]


def parse_dm_target(raw: str) -> DmTarget:
    """Classify a configured recipient id by its Slack prefix."""
    value = raw.strip()
    if value.startswith("D"):
        return ConversationTarget(value)
    if value.startswith("U"):
        return UserTarget(value)
    raise InvalidDmTargetError(raw)


def parse_dm_targets(raw_ids: Iterable[str]) -> list[DmTarget]:
    return [parse_dm_target(raw) for raw in raw_ids]


@dataclass(frozen=True)
class DeliveryOutcome:
    """What the dispatcher managed to send."""

    channel_posted: bool = False
    dms_sent: int = 0


@dataclass(frozen=True)
class RunResult:
    """Summary of a single reminder run."""

    due_count: int
    channel_posted: bool
    dms_sent: int

    def summary(self) -> str:
        return (
            f"Done. Due items: {self.due_count}. "
            f"Channel posted: {str(self.channel_posted).lower()}. "
            f"DMs sent: {self.dms_sent}."
        )
