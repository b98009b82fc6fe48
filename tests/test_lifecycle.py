"""Tests for the contact lifecycle engine."""

from datetime import timedelta

import pytest

from intake.contacts.domain import ContactChanges, ContactDraft, ContactLifecycle, SLAPolicy
from intake.core import ContactIdGenerationExhausted


async def _never_taken(contact_id: str) -> bool:
    return False


def _draft(**overrides) -> ContactDraft:
    fields = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "service": "technical_issue",
        "message": "Dashboard is down",
    }
    fields.update(overrides)
    return ContactDraft(**fields)


async def test_on_create_derives_workflow_fields(lifecycle, frozen_clock):
    contact = await lifecycle.on_create(_draft(), _never_taken)

    assert contact.id is None
    assert contact.status == "new"
    assert contact.priority == "urgent"
    assert contact.request_timestamp == frozen_clock.now()
    assert contact.sla_deadline == frozen_clock.now() + timedelta(hours=1)
    assert contact.created_at == contact.updated_at == frozen_clock.now()
    assert contact.contact_id.startswith("CT-2025-")


async def test_explicit_priority_overrides_classification(lifecycle, frozen_clock):
    contact = await lifecycle.on_create(_draft(priority="low"), _never_taken)

    assert contact.priority == "low"
    assert contact.sla_deadline == frozen_clock.now() + timedelta(hours=72)


async def test_backdated_request_moves_deadline(lifecycle, frozen_clock):
    requested = frozen_clock.now() - timedelta(hours=10)
    contact = await lifecycle.on_create(_draft(request_timestamp=requested), _never_taken)

    assert contact.sla_deadline == requested + timedelta(hours=1)


async def test_custom_policy_is_used(frozen_clock):
    lifecycle = ContactLifecycle(policy=SLAPolicy(sla_hours={"urgent": 2}), clock=frozen_clock)
    contact = await lifecycle.on_create(_draft(), _never_taken)

    assert contact.sla_deadline == frozen_clock.now() + timedelta(hours=2)


async def test_id_generation_retries_on_collision(lifecycle):
    seen = []

    async def taken_twice(contact_id: str) -> bool:
        seen.append(contact_id)
        return len(seen) <= 2

    contact_id = await lifecycle.generate_contact_id(taken_twice)

    assert len(seen) == 3
    assert contact_id == seen[-1]


async def test_id_generation_gives_up_after_cap(frozen_clock):
    lifecycle = ContactLifecycle(clock=frozen_clock)
    calls = []

    async def always_taken(contact_id: str) -> bool:
        calls.append(contact_id)
        return True

    with pytest.raises(ContactIdGenerationExhausted) as exc_info:
        await lifecycle.on_create(_draft(), always_taken)

    assert len(calls) == 50
    assert exc_info.value.attempts == 50


async def test_priority_change_recomputes_deadline_from_request(lifecycle, frozen_clock):
    contact = await lifecycle.on_create(_draft(service="general_inquiry"), _never_taken)
    frozen_clock.advance(hours=3)

    updated = lifecycle.on_update(contact, ContactChanges(priority="urgent"))

    assert updated.sla_deadline == contact.request_timestamp + timedelta(hours=1)
    assert updated.updation_timestamp == frozen_clock.now()
    assert updated.updated_at == frozen_clock.now()


async def test_status_change_keeps_deadline(lifecycle, frozen_clock):
    contact = await lifecycle.on_create(_draft(), _never_taken)
    frozen_clock.advance(minutes=30)

    updated = lifecycle.on_update(contact, ContactChanges(status="resolved"))

    assert updated.status == "resolved"
    assert updated.sla_deadline == contact.sla_deadline
    assert updated.priority == contact.priority


async def test_same_priority_keeps_deadline(lifecycle):
    contact = await lifecycle.on_create(_draft(), _never_taken)
    updated = lifecycle.on_update(contact, ContactChanges(priority="urgent"))

    assert updated.sla_deadline == contact.sla_deadline


async def test_unset_fields_are_untouched(lifecycle):
    contact = await lifecycle.on_create(_draft(admin_notes="call back"), _never_taken)
    updated = lifecycle.on_update(contact, ContactChanges(handled_by=7))

    assert updated.handled_by == 7
    assert updated.admin_notes == "call back"


async def test_on_delete_sets_deleted_at(lifecycle, frozen_clock):
    contact = await lifecycle.on_create(_draft(), _never_taken)
    deleted = lifecycle.on_delete(contact)

    assert deleted.is_deleted
    assert deleted.deleted_at == frozen_clock.now()
