"""Run controller: query Notion, format the digest, deliver it to Slack."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from .config import Settings, load_settings
from .digest import format_digest, format_dm
from .dispatcher import DeliveryDispatcher
from .models import RunResult
from .notion_client import NotionClient

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Post due Notion items to Slack.")
    parser.add_argument(
        "--lookahead-days",
        type=int,
        help="Override LOOKAHEAD_DAYS for this run",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Log the digest without posting to Slack"
    )
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run(
    settings: Settings,
    *,
    now: Optional[datetime] = None,
    lookahead_days: Optional[int] = None,
    notion: Optional[NotionClient] = None,
    dispatcher: Optional[DeliveryDispatcher] = None,
    dry_run: bool = False,
) -> RunResult:
    """Execute one reminder run and return what was delivered."""
    days = settings.lookahead_days if lookahead_days is None else lookahead_days
    now = now or datetime.now(tz=settings.timezone)
    notion = notion or NotionClient(settings)
    dispatcher = dispatcher or DeliveryDispatcher.from_settings(settings, dry_run=dry_run)

    pages = notion.fetch_due_items(now, days, settings.done_status_name)
    logger.info("Found %s item(s) due in the next %s days", len(pages), days)

    message = format_digest(pages, days, settings)
    outcome = dispatcher.dispatch(message, bool(pages), dm_message=format_dm(message))

    return RunResult(
        due_count=len(pages),
        channel_posted=outcome.channel_posted,
        dms_sent=outcome.dms_sent,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.lookahead_days is not None and args.lookahead_days < 0:
        parser.error("--lookahead-days must be zero or positive")

    configure_logging("INFO")
    try:
        settings = load_settings()
        logging.getLogger().setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
        result = run(settings, lookahead_days=args.lookahead_days, dry_run=args.dry_run)
    except Exception as exc:
        logger.debug("Failure details", exc_info=True)
        # Written directly so LOG_LEVEL cannot silence it.
        print(f"Reminder job failed: {exc}", file=sys.stderr)
        outcome = getattr(exc, "outcome", None)
        if outcome is not None:
            print(
                f"Delivered before failure: channel posted: {str(outcome.channel_posted).lower()}. "
                f"DMs sent: {outcome.dms_sent}.",
                file=sys.stderr,
            )
        return 1

    logger.info(result.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
