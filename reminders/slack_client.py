"""Slack delivery over an incoming webhook or the Web API."""

from __future__ import annotations

import logging
from typing import Any, Dict

import requests

from .errors import DeliveryError

logger = logging.getLogger(__name__)


class SlackWebhook:
    """Post plain-text messages to an incoming webhook."""

    def __init__(
        self, url: str, session: requests.Session | None = None, timeout: float = 30.0
    ) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def post_message(self, text: str) -> None:
        try:
            response = self.session.post(self.url, json={"text": text}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DeliveryError(f"Slack webhook failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            logger.error("Slack webhook failed (%s): %s", response.status_code, response.text)
            raise DeliveryError(f"Slack webhook failed: {response.status_code} {response.text}")


class SlackWebClient:
    """Bot-token client for the two Web API methods the job needs."""

    SLACK_BASE = "https://slack.com/api"

    def __init__(
        self, token: str, session: requests.Session | None = None, timeout: float = 30.0
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})
        self.timeout = timeout

    def post_message(self, channel: str, text: str) -> None:
        """Post ``text`` to a channel or DM conversation."""
        self._call("chat.postMessage", {"channel": channel, "text": text})

    def open_conversation(self, user_id: str) -> str:
        """Open (or reuse) the DM conversation with ``user_id`` and return its id."""
        payload = self._call("conversations.open", {"users": user_id, "return_im": True})
        channel = payload.get("channel")
        channel_id = channel.get("id") if isinstance(channel, dict) else None
        if not channel_id:
            raise DeliveryError(f"Could not open DM with user {user_id}")
        return channel_id

    def _call(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.SLACK_BASE}/{method}"
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DeliveryError(f"Slack {method} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("Slack %s failed (%s): %s", method, response.status_code, response.text)
            raise DeliveryError(f"Slack {method} failed: {response.status_code} {response.text}")

        payload = self._parse_response_body(response)
        if not isinstance(payload, dict):
            raise DeliveryError(f"Slack {method} returned a malformed response")
        if not payload.get("ok"):
            error = payload.get("error", "unknown_error")
            logger.error("Slack %s returned error: %s", method, error)
            raise DeliveryError(f"Slack {method} failed: {error}")
        return payload

    @staticmethod
    def _parse_response_body(response) -> dict | str:
        try:
            return response.json()
        except ValueError:
            return response.text
