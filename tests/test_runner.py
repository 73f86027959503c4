"""End-to-end tests for the run controller with faked collaborators."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from conftest import DATABASE_ID, WEBHOOK_URL, make_page, make_settings
from reminders.dispatcher import DeliveryDispatcher
from reminders.errors import ConfigError, DeliveryError, SourceQueryError
from reminders.models import ConversationTarget, DeliveryOutcome, RunResult
from reminders.notion_client import NotionClient
from reminders.runner import main, run

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=ZoneInfo("UTC"))


def _notion_returning(pages) -> tuple[NotionClient, MagicMock]:
    session = MagicMock()
    session.headers = {}
    response = MagicMock(status_code=200)
    response.json.return_value = {"results": pages, "has_more": False}
    session.post.return_value = response
    return NotionClient(make_settings(), session=session), session


def test_done_items_are_dropped_end_to_end() -> None:
    pages = [
        make_page(title="Finished", due="2024-01-02", status="Done"),
        make_page(title="Pending", due="2024-01-03", status="Not started"),
    ]
    notion, _ = _notion_returning(pages)
    webhook = MagicMock()
    dispatcher = DeliveryDispatcher(webhook=webhook, sleep=MagicMock())

    result = run(make_settings(), now=NOW, notion=notion, dispatcher=dispatcher)

    assert result == RunResult(due_count=1, channel_posted=True, dms_sent=0)
    message = webhook.post_message.call_args.args[0]
    item_lines = [line for line in message.splitlines() if line.startswith("• ")]
    assert item_lines == ["• Pending _(Status: Not started)_"]
    assert "Finished" not in message
    assert "Due items: 1." in result.summary()


def test_dms_receive_intro_and_digest() -> None:
    notion, _ = _notion_returning([make_page(title="Pending", due="2024-01-03")])
    web_client = MagicMock()
    dispatcher = DeliveryDispatcher(
        webhook=MagicMock(),
        web_client=web_client,
        dm_targets=make_settings(SLACK_BOT_TOKEN="xoxb", SLACK_DM_USER_IDS="D1").dm_targets,
        sleep=MagicMock(),
    )

    result = run(make_settings(), now=NOW, notion=notion, dispatcher=dispatcher)

    assert result.dms_sent == 1
    text = web_client.post_message.call_args.args[1]
    assert text.startswith("👋 Here are the items due soon:\n\n🔔 *Privacy & Security Reminders*")


def test_nothing_due_posts_empty_message() -> None:
    notion, _ = _notion_returning([])
    webhook = MagicMock()
    result = run(
        make_settings(),
        now=NOW,
        notion=notion,
        dispatcher=DeliveryDispatcher(webhook=webhook, sleep=MagicMock()),
    )
    assert result == RunResult(due_count=0, channel_posted=True, dms_sent=0)
    assert webhook.post_message.call_args.args[0].endswith("✅ Nothing due in the next 7 days.")


def test_lookahead_override() -> None:
    notion = MagicMock()
    notion.fetch_due_items.return_value = []
    dispatcher = MagicMock()
    dispatcher.dispatch.return_value = DeliveryOutcome()

    run(make_settings(), now=NOW, lookahead_days=3, notion=notion, dispatcher=dispatcher)

    notion.fetch_due_items.assert_called_once_with(NOW, 3, "Done")
    assert "(next 3 days)" in dispatcher.dispatch.call_args.args[0]


def _required_env(monkeypatch) -> None:
    monkeypatch.setenv("NOTION_TOKEN", "secret")
    monkeypatch.setenv("NOTION_DATABASE_ID", DATABASE_ID)
    monkeypatch.setenv("SLACK_WEBHOOK_URL", WEBHOOK_URL)


class TestMain:
    def test_success_exit_code(self, monkeypatch) -> None:
        _required_env(monkeypatch)
        with patch("reminders.runner.run", return_value=RunResult(2, True, 0)) as run_mock:
            assert main(["--lookahead-days", "5"]) == 0
        assert run_mock.call_args.kwargs["lookahead_days"] == 5
        assert run_mock.call_args.kwargs["dry_run"] is False

    def test_missing_config_exits_non_zero(self, capsys) -> None:
        error = ConfigError("Missing required env var: NOTION_TOKEN")
        with patch("reminders.runner.load_settings", side_effect=error):
            assert main([]) == 1
        assert "Reminder job failed: Missing required env var: NOTION_TOKEN" in capsys.readouterr().err

    def test_source_failure_exits_non_zero(self, monkeypatch, capsys) -> None:
        _required_env(monkeypatch)
        with patch("reminders.runner.run", side_effect=SourceQueryError("Notion query failed (401)")):
            assert main([]) == 1
        assert "Notion query failed (401)" in capsys.readouterr().err

    def test_failure_reaches_stderr_at_critical_log_level(self, monkeypatch, capsys) -> None:
        _required_env(monkeypatch)
        monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
        with patch("reminders.runner.run", side_effect=DeliveryError("Slack webhook failed: 500")):
            assert main([]) == 1
        assert "Reminder job failed: Slack webhook failed: 500" in capsys.readouterr().err

    def test_partial_delivery_reported_on_failure(self, monkeypatch, capsys) -> None:
        _required_env(monkeypatch)
        web_client = MagicMock()
        web_client.post_message.side_effect = [None, DeliveryError("channel_not_found")]
        notion, _ = _notion_returning([make_page(title="Pending", due="2024-01-03")])
        dispatcher = DeliveryDispatcher(
            webhook=MagicMock(),
            web_client=web_client,
            dm_targets=[ConversationTarget("D1"), ConversationTarget("D2")],
            sleep=MagicMock(),
        )

        def run_with_fakes(settings, **kwargs):
            return run(settings, now=NOW, notion=notion, dispatcher=dispatcher)

        with patch("reminders.runner.run", side_effect=run_with_fakes):
            assert main([]) == 1
        err = capsys.readouterr().err
        assert "Reminder job failed: channel_not_found" in err
        assert "Delivered before failure: channel posted: true. DMs sent: 1." in err
