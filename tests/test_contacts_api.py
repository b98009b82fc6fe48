"""End-to-end tests for the contacts HTTP API."""

from datetime import timedelta

import pytest

from intake.contacts.domain import ContactIdGenerator

SUBMISSION = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "service": "technical_issue",
    "message": "The dashboard returns a 500 error since this morning.",
}


# ========== Submission ==========

async def test_submit_contact(client, frozen_clock):
    response = await client.post("/api/contacts", json=SUBMISSION)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["status"] == 201
    assert body["message"] == "Thank you for contacting us! We will get back to you soon."
    assert body["priority"] == "Urgent"
    assert body["sla_deadline"] == "Mar 14, 2025 11:00 AM"
    assert ContactIdGenerator.is_valid(body["contact_id"])
    assert body["data"]["contact_id"] == body["contact_id"]
    assert body["data"]["status"] == "new"
    assert body["data"]["time_to_sla"] == "1 hours remaining"


async def test_submit_with_manual_priority(client):
    response = await client.post("/api/contacts", json={**SUBMISSION, "priority": "low"})

    assert response.status_code == 201
    assert response.json()["data"]["priority"] == "low"
    assert response.json()["sla_deadline"] == "Mar 17, 2025 10:00 AM"


@pytest.mark.parametrize("override,field", [
    ({"email": "not-an-email"}, "email"),
    ({"service": "web_development"}, "service"),
    ({"name": ""}, "name"),
    ({"message": "x" * 2001}, "message"),
    ({"phone": "1" * 21}, "phone"),
    ({"priority": "critical"}, "priority"),
])
async def test_submit_validation_errors(client, override, field):
    response = await client.post("/api/contacts", json={**SUBMISSION, **override})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["status"] == 422
    assert field in body["errors"]


async def test_duplicate_submission_rejected_within_window(client, frozen_clock):
    first = await client.post("/api/contacts", json=SUBMISSION)
    frozen_clock.advance(minutes=2)

    second = await client.post("/api/contacts", json=SUBMISSION)

    assert second.status_code == 429
    body = second.json()
    assert body["success"] is False
    assert body["contact_id"] == first.json()["contact_id"]

    listing = await client.get("/api/contacts")
    assert listing.json()["meta"]["total"] == 1

    frozen_clock.advance(minutes=4)
    third = await client.post("/api/contacts", json=SUBMISSION)

    assert third.status_code == 201
    assert third.json()["contact_id"] != first.json()["contact_id"]


async def test_different_message_is_not_a_duplicate(client):
    await client.post("/api/contacts", json=SUBMISSION)
    response = await client.post("/api/contacts", json={**SUBMISSION, "message": "Another problem"})

    assert response.status_code == 201


# ========== Listing ==========

async def test_list_defaults(client, make_contact):
    for _ in range(3):
        await make_contact()

    response = await client.get("/api/contacts")

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 3
    assert body["meta"]["total"] == 3
    assert body["meta"]["per_page"] == 15
    assert body["meta"]["from"] == 1
    assert body["meta"]["to"] == 3
    assert body["filters"]["overdue_only"] is False


async def test_list_pagination_boundary(client, make_contact):
    for _ in range(150):
        await make_contact()

    first = (await client.get("/api/contacts", params={"per_page": 100})).json()
    second = (await client.get("/api/contacts", params={"per_page": 100, "page": 2})).json()

    assert len(first["data"]) == 100
    assert first["meta"]["last_page"] == 2
    assert first["meta"]["has_more_pages"] is True
    assert len(second["data"]) == 50
    assert second["meta"]["from"] == 101
    assert second["meta"]["to"] == 150
    assert second["meta"]["has_more_pages"] is False

    ids = {c["id"] for c in first["data"]} | {c["id"] for c in second["data"]}
    assert len(ids) == 150


async def test_list_rejects_oversized_page(client):
    response = await client.get("/api/contacts", params={"per_page": 101})

    assert response.status_code == 422
    assert "per_page" in response.json()["errors"]


async def test_list_rejects_unknown_sort_field(client):
    response = await client.get("/api/contacts", params={"sort_by": "message"})

    assert response.status_code == 422
    assert "sort_by" in response.json()["errors"]


async def test_list_sorted_by_priority(client, make_contact):
    for priority in ("low", "urgent", "medium", "high"):
        await make_contact(priority=priority)

    response = await client.get("/api/contacts", params={"sort_by": "priority", "sort_order": "desc"})

    assert [c["priority"] for c in response.json()["data"]] == ["urgent", "high", "medium", "low"]


async def test_list_overdue_only(client, make_contact, frozen_clock):
    now = frozen_clock.now()
    overdue = await make_contact(priority="urgent", request_timestamp=now - timedelta(hours=2))
    await make_contact(priority="urgent", status="closed", request_timestamp=now - timedelta(hours=2))
    await make_contact(priority="low")

    response = await client.get("/api/contacts", params={"overdue_only": "true"})

    data = response.json()["data"]
    assert [c["contact_id"] for c in data] == [overdue.contact_id]
    assert data[0]["is_overdue"] is True


async def test_list_high_priority_and_search(client, make_contact):
    await make_contact(priority="high", name="Maria Garcia")
    await make_contact(priority="urgent", name="Tom Baker")
    await make_contact(priority="low", name="Maria Lopez")

    response = await client.get("/api/contacts", params={"high_priority_only": "1", "search": "MARIA"})

    body = response.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["name"] == "Maria Garcia"
    assert body["filters"]["search"] == "MARIA"


async def test_list_shortcuts(client, make_contact):
    await make_contact(priority="urgent", status="in_progress", handled_by=5)
    await make_contact(priority="low")

    by_priority = (await client.get("/api/contacts/priority/urgent")).json()
    by_status = (await client.get("/api/contacts/status/in_progress")).json()
    by_user = (await client.get("/api/contacts/user/5")).json()

    assert by_priority["meta"]["total"] == 1
    assert by_status["meta"]["total"] == 1
    assert by_user["data"][0]["handled_by"] == 5

    invalid = await client.get("/api/contacts/priority/critical")
    assert invalid.status_code == 422


# ========== Show / Track ==========

async def test_show_by_contact_id_and_numeric_id(client, make_contact):
    contact = await make_contact(admin_notes="Call after 5pm")

    by_ref = await client.get(f"/api/contacts/{contact.contact_id}")
    by_id = await client.get(f"/api/contacts/{contact.id}")

    assert by_ref.status_code == 200
    assert by_id.status_code == 200
    assert by_ref.json()["data"]["id"] == contact.id
    assert by_id.json()["data"]["admin_notes"] == "Call after 5pm"


async def test_show_missing_contact(client):
    response = await client.get("/api/contacts/CT-2025-ZZZZZZ")

    assert response.status_code == 404
    assert response.json()["success"] is False


async def test_track_returns_customer_projection(client, make_contact, frozen_clock):
    contact = await make_contact(
        service="support",
        status="in_progress",
        admin_notes="internal only",
        request_timestamp=frozen_clock.now() - timedelta(hours=6),
    )

    response = await client.get(f"/api/contacts/track/{contact.contact_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert set(data) == {
        "contact_id", "status", "priority", "submitted_at", "last_updated", "sla_status"
    }
    assert data["status"] == "In progress"
    assert data["priority"] == "High"
    assert data["submitted_at"] == "Mar 14, 2025 04:00 AM"
    assert data["last_updated"] is None
    assert data["sla_status"] == "Overdue by 2 hours"


async def test_track_unknown_contact(client):
    response = await client.get("/api/contacts/track/CT-2025-NOPE00")
    assert response.status_code == 404


# ========== Updates ==========

async def test_update_priority_recomputes_deadline(client, make_contact, frozen_clock):
    contact = await make_contact(service="general_inquiry")
    frozen_clock.advance(hours=2)

    response = await client.put(f"/api/contacts/{contact.id}", json={"priority": "urgent"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["priority"] == "urgent"
    assert data["sla_deadline"].startswith("2025-03-14T11:00:00")
    assert data["is_overdue"] is True


async def test_patch_clears_assignment_and_keeps_status(client, make_contact):
    contact = await make_contact(status="in_progress", handled_by=3)

    response = await client.patch(
        f"/api/contacts/{contact.id}",
        json={"handled_by": None, "admin_notes": "Waiting on customer"},
    )

    data = response.json()["data"]
    assert data["handled_by"] is None
    assert data["admin_notes"] == "Waiting on customer"
    assert data["status"] == "in_progress"
    assert data["updation_timestamp"] is not None


async def test_update_rejects_unknown_status(client, make_contact):
    contact = await make_contact()

    response = await client.put(f"/api/contacts/{contact.id}", json={"status": "pending"})

    assert response.status_code == 422
    assert "status" in response.json()["errors"]


@pytest.mark.parametrize("field", ["status", "priority"])
async def test_update_rejects_null_status_or_priority(client, make_contact, field):
    contact = await make_contact()

    response = await client.patch(f"/api/contacts/{contact.id}", json={field: None})

    assert response.status_code == 422
    assert field in response.json()["errors"]

    unchanged = (await client.get(f"/api/contacts/{contact.id}")).json()["data"]
    assert unchanged[field] == getattr(contact, field)


async def test_update_missing_contact(client):
    response = await client.put("/api/contacts/9999", json={"status": "closed"})
    assert response.status_code == 404


async def test_assign_moves_new_to_in_progress(client, make_contact):
    contact = await make_contact()

    response = await client.post(f"/api/contacts/{contact.id}/assign", json={"user_id": 7})

    data = response.json()["data"]
    assert data["handled_by"] == 7
    assert data["status"] == "in_progress"


async def test_assign_keeps_other_statuses(client, make_contact):
    contact = await make_contact(status="resolved")

    response = await client.post(f"/api/contacts/{contact.id}/assign", json={"user_id": 7})

    assert response.json()["data"]["status"] == "resolved"


async def test_delete_is_soft(client, make_contact, repository):
    contact = await make_contact()

    response = await client.delete(f"/api/contacts/{contact.id}")

    assert response.status_code == 200
    assert response.json()["message"] == "Contact deleted successfully"
    assert (await client.get(f"/api/contacts/{contact.contact_id}")).status_code == 404
    assert (await client.get("/api/contacts")).json()["meta"]["total"] == 0
    assert await repository.contact_id_exists(contact.contact_id)


# ========== Overdue / Stats ==========

async def test_overdue_endpoint_orders_by_deadline(client, make_contact, frozen_clock):
    now = frozen_clock.now()
    later = await make_contact(priority="urgent", request_timestamp=now - timedelta(hours=2))
    earliest = await make_contact(priority="high", request_timestamp=now - timedelta(hours=10))
    await make_contact(priority="urgent", status="resolved", request_timestamp=now - timedelta(hours=10))

    response = await client.get("/api/contacts/overdue")

    body = response.json()
    assert body["count"] == 2
    assert [c["contact_id"] for c in body["data"]] == [earliest.contact_id, later.contact_id]


async def test_stats(client, make_contact, frozen_clock):
    now = frozen_clock.now()
    await make_contact(service="technical_issue")
    await make_contact(service="support", status="in_progress", handled_by=2)
    await make_contact(service="partnership", status="resolved", request_timestamp=now - timedelta(days=3))
    await make_contact(priority="urgent", request_timestamp=now - timedelta(hours=5))

    response = await client.get("/api/contacts/stats")

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["by_status"] == {"total": 4, "new": 2, "in_progress": 1, "resolved": 1, "closed": 0}
    assert stats["by_priority"] == {"urgent": 2, "high": 1, "medium": 1, "low": 0}
    assert stats["by_time"] == {"today": 4, "this_week": 4, "this_month": 4}
    assert stats["performance"]["overdue"] == 1
    assert stats["performance"]["high_priority_pending"] == 3
    assert stats["performance"]["unassigned"] == 2
    assert stats["performance"]["avg_response_time"] is None
    assert stats["recent"] == {"last_24h": 4, "urgent_today": 2}


async def test_stats_refresh_after_write(client, make_contact):
    contact = await make_contact()
    before = (await client.get("/api/contacts/stats")).json()["data"]

    await client.post(f"/api/contacts/{contact.id}/assign", json={"user_id": 1})
    after = (await client.get("/api/contacts/stats")).json()["data"]

    assert before["by_status"]["new"] == 1
    assert after["by_status"]["new"] == 0
    assert after["by_status"]["in_progress"] == 1
    assert after["performance"]["avg_response_time"] == 0.0


# ========== Utility ==========

async def test_ping_and_endpoints(client):
    ping = await client.get("/api/ping")
    endpoints = await client.get("/api/endpoints")

    assert ping.json()["message"] == "pong"
    paths = {e["path"] for e in endpoints.json()["data"]}
    assert "/api/contacts" in paths
    assert "/api/contacts/track/{contact_id}" in paths
    methods = {e["path"]: e["methods"] for e in endpoints.json()["data"]}
    assert methods["/api/contacts"] == ["GET", "POST"]
    assert methods["/api/contacts/{contact_pk}"] == ["DELETE", "PATCH", "PUT"]


async def test_correlation_id_is_echoed(client):
    response = await client.get("/api/ping", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


async def test_health_reports_policy(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["checks"]["sla_policy"]["urgent"] == 1
