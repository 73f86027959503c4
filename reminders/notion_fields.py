"""Typed accessors for Notion page properties.

Notion reports every property as ``{"type": kind, kind: value}``. Each helper
reads one semantic field and returns an empty value when the property is
missing or has an unexpected kind, so a misconfigured column never aborts a
run.
"""

from __future__ import annotations

from datetime import date as Date
from typing import Any, Optional

UNTITLED = "(Untitled)"


def _property(page: Any, name: str) -> Optional[dict]:
    if not isinstance(page, dict):
        return None
    properties = page.get("properties")
    if not isinstance(properties, dict):
        return None
    prop = properties.get(name)
    return prop if isinstance(prop, dict) else None


def _first_title_property(page: Any) -> Optional[dict]:
    properties = page.get("properties") if isinstance(page, dict) else None
    if not isinstance(properties, dict):
        return None
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return prop
    return None


def _option_name(value: Any) -> str:
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str):
            return name
    return ""


def title(page: Any, prop_name: Optional[str] = None) -> str:
    """Plain text of the title property, or ``(Untitled)``.

    Falls back to the page's own title column when ``prop_name`` is not given
    or names a column the page does not have.
    """
    prop = _property(page, prop_name) if prop_name else None
    if prop is None:
        prop = _first_title_property(page)
    if not prop or prop.get("type") != "title":
        return UNTITLED
    fragments = prop.get("title")
    if not isinstance(fragments, list):
        return UNTITLED
    text = "".join(
        fragment["plain_text"]
        for fragment in fragments
        if isinstance(fragment, dict) and isinstance(fragment.get("plain_text"), str)
    ).strip()
    return text or UNTITLED


def date(page: Any, prop_name: str) -> Optional[Date]:
    """Calendar date of a date property's start, as written in Notion."""
    prop = _property(page, prop_name)
    if not prop or prop.get("type") != "date":
        return None
    value = prop.get("date")
    start = value.get("start") if isinstance(value, dict) else None
    if not isinstance(start, str):
        return None
    try:
        return Date.fromisoformat(start[:10])
    except ValueError:
        return None


def select_label(page: Any, prop_name: str) -> str:
    prop = _property(page, prop_name)
    if not prop or prop.get("type") != "select":
        return ""
    return _option_name(prop.get("select"))


def status_label(page: Any, prop_name: str) -> str:
    """Label of a status-like property, whether it is a select or a native status."""
    prop = _property(page, prop_name)
    if not prop:
        return ""
    kind = prop.get("type")
    if kind in ("select", "status"):
        return _option_name(prop.get(kind))
    return ""
