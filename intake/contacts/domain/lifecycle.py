"""
Contact Lifecycle
=================

Derives and maintains the workflow fields of a contact across creation and
administrative updates: contact id, request time, default priority and the
SLA deadline.
"""

from dataclasses import replace
from typing import Awaitable, Callable, Optional

from intake.contacts.domain.entities import Contact, ContactChanges, ContactDraft
from intake.contacts.domain.value_objects import (
    ContactIdGenerator,
    PriorityClassifier,
    SLAPolicy,
)
from intake.core import Clock, ContactIdGenerationExhausted, system_clock

IdExists = Callable[[str], Awaitable[bool]]


class ContactLifecycle:
    """
    Lifecycle engine for contacts.

    Stateless apart from its collaborators: the SLA policy and the clock.
    """

    MAX_ID_ATTEMPTS = 50

    def __init__(
        self,
        policy: Optional[SLAPolicy] = None,
        clock: Clock = system_clock,
        max_id_attempts: int = MAX_ID_ATTEMPTS
    ):
        self._policy = policy or SLAPolicy()
        self._clock = clock
        self._max_id_attempts = max_id_attempts

    @property
    def policy(self) -> SLAPolicy:
        return self._policy

    async def generate_contact_id(self, id_exists: IdExists) -> str:
        """
        Find a contact id not used by any record, deleted ones included.

        Raises:
            ContactIdGenerationExhausted: if every attempt collided
        """
        now = self._clock.now()
        for _ in range(self._max_id_attempts):
            candidate = ContactIdGenerator.candidate(now)
            if not await id_exists(candidate):
                return candidate
        raise ContactIdGenerationExhausted(self._max_id_attempts)

    async def on_create(self, draft: ContactDraft, id_exists: IdExists) -> Contact:
        """
        Build a fully populated contact from a draft.

        Args:
            draft: Submitted or seeded fields
            id_exists: Async predicate telling whether a contact id is taken

        Returns:
            Contact ready to be persisted (id is None)
        """
        now = self._clock.now()

        contact_id = draft.contact_id or await self.generate_contact_id(id_exists)
        request_timestamp = draft.request_timestamp or now
        priority = draft.priority or PriorityClassifier.classify(draft.service)
        sla_deadline = draft.sla_deadline or self._policy.deadline_for(request_timestamp, priority)

        return Contact(
            id=None,
            contact_id=contact_id,
            name=draft.name,
            email=draft.email,
            phone=draft.phone,
            service=draft.service,
            message=draft.message,
            status=draft.status,
            priority=priority,
            sla_deadline=sla_deadline,
            request_timestamp=request_timestamp,
            handled_by=draft.handled_by,
            admin_notes=draft.admin_notes,
            created_at=now,
            updated_at=now,
        )

    def on_update(self, existing: Contact, changes: ContactChanges) -> Contact:
        """
        Apply an administrative change set.

        A priority change moves the deadline, still anchored at the original
        request time. Status values are applied as given.
        """
        now = self._clock.now()
        provided = changes.provided()

        updated = replace(
            existing,
            **provided,
            updation_timestamp=now,
            updated_at=now,
        )

        if "priority" in provided and provided["priority"] != existing.priority:
            updated.sla_deadline = self._policy.deadline_for(
                existing.request_timestamp, updated.priority
            )

        return updated

    def on_delete(self, existing: Contact) -> Contact:
        """Mark a contact as soft deleted."""
        now = self._clock.now()
        return replace(existing, deleted_at=now, updated_at=now)
