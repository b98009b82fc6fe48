"""Tests for the SLA policy manager and the Slack client."""

import httpx
import pytest

from intake.contacts.infrastructure import CircuitBreaker, SLAPolicyManager, SlackClient, SlackMessage
from intake.core import ConfigurationException


def _message() -> SlackMessage:
    return SlackMessage(
        contact_id="CT-2025-ABC123",
        name="Jane Doe",
        service="technical_issue",
        priority="urgent",
        status="new",
        sla_deadline="Mar 14, 2025 11:00 AM",
        overdue_by="Overdue by 2 hours",
    )


def test_missing_policy_file_uses_defaults(tmp_path):
    manager = SLAPolicyManager()
    policy = manager.load(tmp_path / "absent.yaml")

    assert policy.hours_for("urgent") == 1
    assert manager.get_policy() is policy


def test_policy_loaded_from_yaml(tmp_path):
    path = tmp_path / "sla_policy.yaml"
    path.write_text("sla_hours:\n  urgent: 2\n  low: 96\n")

    manager = SLAPolicyManager()
    manager.load(path)

    assert manager.get_policy().hours_for("urgent") == 2
    assert manager.get_policy().hours_for("low") == 96
    assert manager.get_policy().hours_for("high") == 4


def test_invalid_policy_file_fails_initial_load(tmp_path):
    path = tmp_path / "sla_policy.yaml"
    path.write_text("sla_hours:\n  urgent: -1\n")

    with pytest.raises(ConfigurationException):
        SLAPolicyManager().load(path)


def test_failed_reload_keeps_previous_policy(tmp_path):
    path = tmp_path / "sla_policy.yaml"
    path.write_text("sla_hours:\n  urgent: 2\n")
    manager = SLAPolicyManager()
    manager.load(path)

    path.write_text("sla_hours: [not, a, mapping\n")

    assert manager.reload() is False
    assert manager.get_policy().hours_for("urgent") == 2


def test_circuit_breaker_opens_after_threshold():
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)

    breaker.record_failure()
    assert breaker.allow_request()
    breaker.record_failure()
    assert not breaker.allow_request()

    breaker.record_success()
    assert breaker.allow_request()


async def test_slack_disabled_without_webhook():
    client = SlackClient(webhook_url="")

    assert not client.enabled
    assert await client.send_alert(_message()) is False


async def test_slack_posts_block_message():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, text="ok")

    client = SlackClient(webhook_url="https://hooks.example.com/T000", channel="#alerts", timeout_seconds=1)
    client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    assert await client.send_alert(_message()) is True
    assert len(captured) == 1
    assert b"CT-2025-ABC123" in captured[0].content
    assert b"#alerts" in captured[0].content

    await client.close()


async def test_slack_reports_failure_after_retries():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    client = SlackClient(webhook_url="https://hooks.example.com/T000", timeout_seconds=1)
    client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    assert await client.send_alert(_message(), max_retries=1) is False

    await client.close()
