"""
Overdue Escalation
==================

Background job that notifies Slack when open contacts pass their SLA
deadline.

Each sweep only covers deadlines that lapsed since the previous sweep, so a
contact is announced once. The first sweep after start-up covers every
contact that is already overdue.
"""

from datetime import datetime
from typing import Callable, Optional

from intake.contacts.application import IContactRepository
from intake.contacts.domain import Contact, projections
from intake.contacts.infrastructure.external import SlackClient, SlackMessage
from intake.contacts.infrastructure.repositories import SQLAlchemyContactRepository
from intake.core import Clock, system_clock
from intake.infrastructure.database import get_session_context
from intake.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class OverdueEscalator:
    """Finds newly overdue contacts and posts one Slack alert per contact."""

    def __init__(
        self,
        slack_client: SlackClient,
        clock: Clock = system_clock,
        session_factory: Callable = get_session_context
    ):
        self._slack = slack_client
        self._clock = clock
        self._session_factory = session_factory
        self._last_sweep_at: Optional[datetime] = None

    @property
    def last_sweep_at(self) -> Optional[datetime]:
        return self._last_sweep_at

    def _message(self, contact: Contact, now: datetime) -> SlackMessage:
        return SlackMessage(
            contact_id=contact.contact_id,
            name=contact.name,
            service=contact.service,
            priority=contact.priority,
            status=contact.status,
            sla_deadline=projections.format_timestamp(contact.sla_deadline),
            overdue_by=projections.sla_status(contact, now),
            handled_by=contact.handled_by,
        )

    async def sweep(self, repository: IContactRepository) -> dict:
        """
        Alert on contacts whose deadline lapsed since the last sweep.

        Returns:
            Summary with the number of contacts found and alerts sent
        """
        now = self._clock.now()
        contacts = await repository.overdue(now, since=self._last_sweep_at)

        sent = 0
        for contact in contacts:
            if await self._slack.send_alert(self._message(contact, now)):
                sent += 1

        self._last_sweep_at = now

        summary = {"overdue_found": len(contacts), "notifications_sent": sent}
        if contacts:
            logger.info("Overdue sweep completed", extra=summary)
        return summary

    async def run(self) -> dict:
        """Scheduler entry point: sweep inside a fresh session."""
        with log_latency(logger, "overdue_sweep"):
            async with self._session_factory() as session:
                return await self.sweep(SQLAlchemyContactRepository(session))
