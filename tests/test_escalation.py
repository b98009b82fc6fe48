"""Tests for the overdue escalation sweep."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from intake.contacts.escalation import OverdueEscalator
from intake.contacts.infrastructure import SlackClient


@pytest.fixture
def slack_client():
    client = AsyncMock(spec=SlackClient)
    client.send_alert.return_value = True
    return client


@pytest.fixture
def escalator(slack_client, frozen_clock):
    return OverdueEscalator(slack_client, clock=frozen_clock)


async def test_first_sweep_alerts_every_overdue_contact(escalator, slack_client, make_contact, repository, frozen_clock):
    now = frozen_clock.now()
    await make_contact(priority="urgent", request_timestamp=now - timedelta(hours=3))
    await make_contact(priority="high", request_timestamp=now - timedelta(hours=6))
    await make_contact(priority="low", request_timestamp=now - timedelta(hours=6))

    summary = await escalator.sweep(repository)

    assert summary == {"overdue_found": 2, "notifications_sent": 2}
    assert slack_client.send_alert.await_count == 2
    assert escalator.last_sweep_at == now


async def test_next_sweep_only_alerts_newly_overdue(escalator, slack_client, make_contact, repository, frozen_clock):
    now = frozen_clock.now()
    await make_contact(priority="urgent", request_timestamp=now - timedelta(hours=3))
    pending = await make_contact(priority="urgent", request_timestamp=now - timedelta(minutes=30))

    await escalator.sweep(repository)
    slack_client.send_alert.reset_mock()

    frozen_clock.advance(hours=1)
    summary = await escalator.sweep(repository)

    assert summary["overdue_found"] == 1
    message = slack_client.send_alert.await_args.args[0]
    assert message.contact_id == pending.contact_id
    assert message.overdue_by == "Overdue by 1 hours"


async def test_closed_contacts_are_not_escalated(escalator, slack_client, make_contact, repository, frozen_clock):
    now = frozen_clock.now()
    await make_contact(priority="urgent", status="resolved", request_timestamp=now - timedelta(hours=3))

    summary = await escalator.sweep(repository)

    assert summary["overdue_found"] == 0
    slack_client.send_alert.assert_not_awaited()


async def test_failed_notifications_are_counted(escalator, slack_client, make_contact, repository, frozen_clock):
    slack_client.send_alert.return_value = False
    await make_contact(priority="urgent", request_timestamp=frozen_clock.now() - timedelta(hours=3))

    summary = await escalator.sweep(repository)

    assert summary == {"overdue_found": 1, "notifications_sent": 0}
