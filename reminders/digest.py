"""Render due Notion pages into a Slack digest message."""

from __future__ import annotations

from typing import Sequence

from . import notion_fields
from .config import Settings
from .models import ExtractedItem

NO_DUE_DATE = "No due date"
DM_INTRO = "👋 Here are the items due soon:\n\n"


def header(lookahead_days: int) -> str:
    return f"🔔 *Privacy & Security Reminders* (next {lookahead_days} days)"


def extract_item(
    page: dict,
    *,
    title_prop: str = "Name",
    due_prop: str = "Next due",
    status_prop: str = "Status",
    category_prop: str = "Type",
    environment_prop: str = "Environment",
) -> ExtractedItem:
    return ExtractedItem(
        title=notion_fields.title(page, title_prop),
        due_date=notion_fields.date(page, due_prop),
        status=notion_fields.status_label(page, status_prop),
        category=notion_fields.select_label(page, category_prop),
        environment=notion_fields.select_label(page, environment_prop),
    )


def extract_items(pages: Sequence[dict], settings: Settings | None = None) -> list[ExtractedItem]:
    """Extract every page, using the property names from ``settings`` when given."""
    if settings is None:
        return [extract_item(page) for page in pages]
    return [
        extract_item(
            page,
            title_prop=settings.notion_prop_title,
            due_prop=settings.notion_prop_due,
            status_prop=settings.notion_prop_status,
            category_prop=settings.notion_prop_category,
            environment_prop=settings.notion_prop_environment,
        )
        for page in pages
    ]


def due_date_key(item: ExtractedItem) -> str:
    return item.due_date.isoformat() if item.due_date else NO_DUE_DATE


def group_by_due_date(items: Sequence[ExtractedItem]) -> dict[str, list[ExtractedItem]]:
    """Group items by due date, keeping first-seen key order and input order within groups."""
    groups: dict[str, list[ExtractedItem]] = {}
    for item in items:
        groups.setdefault(due_date_key(item), []).append(item)
    return groups


def format_item(item: ExtractedItem) -> str:
    prefix_bits = [bit for bit in (item.category, item.environment) if bit]
    prefix = f"{' / '.join(prefix_bits)} — " if prefix_bits else ""
    status = f" _(Status: {item.status})_" if item.status else ""
    return f"• {prefix}{item.title}{status}"


def format_digest(
    pages: Sequence[dict], lookahead_days: int, settings: Settings | None = None
) -> str:
    """Build the channel digest for ``pages``; the empty case gets a fixed two-line message."""
    if not pages:
        return f"{header(lookahead_days)}\n✅ Nothing due in the next {lookahead_days} days."

    lines = [header(lookahead_days)]
    for key, group in group_by_due_date(extract_items(pages, settings)).items():
        lines.append("")
        lines.append(f"*{key}*")
        lines.extend(format_item(item) for item in group)
    return "\n".join(lines)


def format_dm(digest: str) -> str:
    return f"{DM_INTRO}{digest}"
