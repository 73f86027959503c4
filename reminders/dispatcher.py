"""Fan a digest out to the Slack channel and DM recipients."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Optional, Sequence

from .config import Settings
from .errors import ConfigError, ReminderError
from .models import ConversationTarget, DeliveryOutcome, DmTarget, UserTarget
from .slack_client import SlackWebClient, SlackWebhook

logger = logging.getLogger(__name__)

DM_PACING_SECONDS = 1.1


class DeliveryDispatcher:
    """Send the digest to every configured destination, one call at a time."""

    def __init__(
        self,
        *,
        post_when_empty: bool = True,
        webhook: Optional[SlackWebhook] = None,
        web_client: Optional[SlackWebClient] = None,
        channel_id: Optional[str] = None,
        dm_targets: Sequence[DmTarget] = (),
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
    ) -> None:
        self.post_when_empty = post_when_empty
        self.webhook = webhook
        self.web_client = web_client
        self.channel_id = channel_id
        self.dm_targets = list(dm_targets)
        self.sleep = sleep
        self.dry_run = dry_run

    @classmethod
    def from_settings(cls, settings: Settings, *, dry_run: bool = False) -> "DeliveryDispatcher":
        webhook = None
        if settings.slack_webhook_url:
            webhook = SlackWebhook(str(settings.slack_webhook_url), timeout=settings.http_timeout)
        web_client = None
        if settings.slack_bot_token:
            web_client = SlackWebClient(settings.slack_bot_token, timeout=settings.http_timeout)
        return cls(
            post_when_empty=settings.post_when_empty,
            webhook=webhook,
            web_client=web_client,
            channel_id=settings.slack_channel_id,
            dm_targets=settings.dm_targets,
            dry_run=dry_run,
        )

    @property
    def channel_configured(self) -> bool:
        return self.webhook is not None or bool(self.web_client and self.channel_id)

    def dispatch(
        self, message: str, has_due_items: bool, dm_message: Optional[str] = None
    ) -> DeliveryOutcome:
        """Post ``message`` to the channel and ``dm_message`` (default ``message``) to each DM target.

        A failure stops delivery; the raised error carries the outcome reached so far.
        """
        channel_posted = False
        dms_sent = 0
        try:
            channel_posted = self._post_channel(message, has_due_items)
            dm_text = dm_message if dm_message is not None else message
            for _ in self._send_dms(dm_text, has_due_items):
                dms_sent += 1
        except ReminderError as exc:
            exc.outcome = DeliveryOutcome(channel_posted=channel_posted, dms_sent=dms_sent)
            raise
        return DeliveryOutcome(channel_posted=channel_posted, dms_sent=dms_sent)

    def _post_channel(self, message: str, has_due_items: bool) -> bool:
        if not (has_due_items or self.post_when_empty):
            logger.info("No items due. Not posting to the channel (POST_WHEN_EMPTY=false).")
            return False
        if not self.channel_configured:
            logger.info("No Slack channel configured; skipping channel post.")
            return False
        if self.dry_run:
            logger.info("[DRY-RUN] Would post to the channel:\n%s", message)
            return False

        if self.webhook is not None:
            self.webhook.post_message(message)
        else:
            self.web_client.post_message(self.channel_id, message)
        logger.info("Posted digest to the Slack channel")
        return True

    def _send_dms(self, message: str, has_due_items: bool) -> Iterator[DmTarget]:
        """Send each DM in order, yielding every target once its message is delivered."""
        if not self.dm_targets:
            return
        if not has_due_items:
            logger.info("No due items; skipping DMs.")
            return
        if self.web_client is None:
            raise ConfigError("SLACK_BOT_TOKEN is missing (required for DMs).")

        last = len(self.dm_targets) - 1
        for index, target in enumerate(self.dm_targets):
            if self.dry_run:
                logger.info("[DRY-RUN] Would DM %s", target)
                continue
            self._send_dm(target, message)
            yield target
            if index < last:
                self.sleep(DM_PACING_SECONDS)

    def _send_dm(self, target: DmTarget, message: str) -> None:
        if isinstance(target, ConversationTarget):
            channel = target.conversation_id
        elif isinstance(target, UserTarget):
            channel = self.web_client.open_conversation(target.user_id)
        else:
            raise TypeError(f"Unsupported DM target: {target!r}")
        self.web_client.post_message(channel, message)
        logger.info("Sent DM to %s", channel)
