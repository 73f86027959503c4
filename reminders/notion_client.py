"""Notion helper focused on querying a database for due pages."""

from __future__ import annotations

import logging
import re
from datetime import datetime

import requests
from requests import Response

from . import notion_fields
from .config import Settings
from .errors import SourceQueryError
from .utils import due_window, ensure_aware, isoformat

logger = logging.getLogger(__name__)

_DATABASE_ID = re.compile(r"[0-9a-fA-F]{32}")


class NotionClient:
    """Thin wrapper that authenticates with Notion and returns due pages."""

    NOTION_BASE = "https://api.notion.com/v1"
    NOTION_VERSION = "2022-06-28"
    PAGE_SIZE = 100

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {settings.notion_token}",
                "Notion-Version": self.NOTION_VERSION,
                "Content-Type": "application/json",
            }
        )

    def fetch_due_items(
        self,
        now: datetime,
        lookahead_days: int,
        done_status_name: str | None = "Done",
    ) -> list[dict]:
        """Return pages due between today and today + ``lookahead_days``, ascending by due date.

        Pages whose status equals ``done_status_name`` are excluded: by the
        query itself when the status property kind is known, otherwise locally.
        """
        settings = self.settings
        url = f"{self.NOTION_BASE}/databases/{self._database_id()}/query"
        start, end = due_window(ensure_aware(now, settings.timezone), lookahead_days)
        status_kind = settings.notion_status_property_type
        server_filter_supported = status_kind in ("select", "status")

        filter_clauses = [
            {"property": settings.notion_prop_due, "date": {"on_or_after": isoformat(start)}},
            {"property": settings.notion_prop_due, "date": {"on_or_before": isoformat(end)}},
        ]
        if done_status_name and server_filter_supported:
            filter_clauses.append(
                {
                    "property": settings.notion_prop_status,
                    status_kind: {"does_not_equal": done_status_name},
                }
            )

        body: dict = {
            "filter": {"and": filter_clauses},
            "sorts": [{"property": settings.notion_prop_due, "direction": "ascending"}],
            "page_size": self.PAGE_SIZE,
        }

        logger.info(
            "Querying Notion for items due between %s and %s", start.date(), end.date()
        )
        pages: list[dict] = []
        while True:
            payload = self._post(url, body)
            results = payload.get("results")
            if not isinstance(results, list):
                raise SourceQueryError("Notion query returned no result list")
            pages.extend(results)

            cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not cursor:
                break
            logger.debug("Fetching next Notion result page (cursor %s)", cursor)
            body = {**body, "start_cursor": cursor}

        if done_status_name and not server_filter_supported:
            before = len(pages)
            pages = [
                page
                for page in pages
                if notion_fields.status_label(page, settings.notion_prop_status) != done_status_name
            ]
            logger.debug("Dropped %s page(s) marked '%s'", before - len(pages), done_status_name)

        return pages

    def _post(self, url: str, body: dict) -> dict:
        try:
            resp: Response = self.session.post(url, json=body, timeout=self.settings.http_timeout)
        except requests.RequestException as exc:
            raise SourceQueryError(f"Notion query failed: {exc}") from exc
        if resp.status_code >= 400:
            logger.error("Notion request failed (%s): %s", resp.status_code, resp.text)
            raise SourceQueryError(f"Notion query failed ({resp.status_code}): {resp.text}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise SourceQueryError("Notion query returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise SourceQueryError("Notion query returned an unexpected response")
        return payload

    def _database_id(self) -> str:
        compact = self.settings.notion_database_id.replace("-", "")
        if not _DATABASE_ID.fullmatch(compact):
            raise SourceQueryError(
                f"Invalid NOTION_DATABASE_ID '{self.settings.notion_database_id}'"
            )
        return compact
