#!/usr/bin/env python3
"""
Seed Sample Contacts
====================

Creates sample contacts through the lifecycle engine so ids, priorities and
SLA deadlines follow the same rules as real submissions. Request times are
backdated up to 30 days and statuses are spread across the workflow, so the
dashboard and overdue views have something to show.

Usage:
    python scripts/seed_contacts.py --count 50
    python scripts/seed_contacts.py --database-url sqlite+aiosqlite:///./contacts.db
"""

import argparse
import asyncio
import random
from datetime import datetime, timedelta, timezone

from intake.config import VALID_SERVICES, settings
from intake.contacts.application import ContactService
from intake.contacts.domain import ContactDraft, ContactLifecycle
from intake.contacts.infrastructure import (
    SLAPolicyManager,
    SQLAlchemyContactRepository,
    StatsCache,
)
from intake.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)

FIRST_NAMES = ["Ada", "Grace", "Alan", "Linus", "Margaret", "Dennis", "Barbara", "Ken"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Torvalds", "Hamilton", "Ritchie", "Liskov", "Thompson"]

MESSAGES = {
    "technical_issue": "The application shows an error page when I open my reports.",
    "billing_dispute": "I was charged twice for the same invoice this month.",
    "account_locked": "My account got locked after a password reset.",
    "support": "How do I export my data to CSV?",
    "complaint": "Response times from your team have been slow lately.",
    "general_inquiry": "Do you offer discounts for non-profit organisations?",
    "partnership": "We would like to discuss a reseller partnership.",
    "sales_inquiry": "Could you send me pricing for 50 seats?",
}

# (status, weight)
STATUS_MIX = [("new", 10), ("in_progress", 5), ("resolved", 8), ("closed", 3)]


def build_draft(index: int, now: datetime, rng: random.Random) -> ContactDraft:
    """One random but plausible contact."""
    first = rng.choice(FIRST_NAMES)
    last = rng.choice(LAST_NAMES)
    service = rng.choice(VALID_SERVICES)
    status = rng.choices([s for s, _ in STATUS_MIX], weights=[w for _, w in STATUS_MIX])[0]
    requested = now - timedelta(minutes=rng.randint(0, 30 * 24 * 60))

    return ContactDraft(
        name=f"{first} {last}",
        email=f"{first}.{last}.{index}@example.com".lower(),
        phone=None if rng.random() < 0.2 else f"+1 555 {rng.randint(1000, 9999)}",
        service=service,
        message=MESSAGES[service],
        status=status,
        request_timestamp=requested,
        handled_by=rng.randint(1, 3) if status != "new" else None,
        admin_notes="Seeded record" if status in ("resolved", "closed") else None,
    )


async def seed(count: int, database_url: str, seed_value: int) -> None:
    init_database(database_url)
    await create_tables()

    policy_manager = SLAPolicyManager()
    policy_manager.load(settings.sla_policy_path)

    rng = random.Random(seed_value)
    now = datetime.now(timezone.utc)

    try:
        async with get_session_context() as session:
            service = ContactService(
                repository=SQLAlchemyContactRepository(session),
                lifecycle=ContactLifecycle(policy=policy_manager.get_policy()),
                stats_cache=StatsCache(),
            )
            for index in range(count):
                contact = await service.create(build_draft(index, now, rng))
                print(f"  {contact.contact_id}  {contact.priority:<7} {contact.status:<12} {contact.service}")
    finally:
        await close_database()

    print(f"Seeded {count} contacts")


def main():
    parser = argparse.ArgumentParser(description="Seed sample contacts")
    parser.add_argument("--count", type=int, default=40, help="Number of contacts to create")
    parser.add_argument("--database-url", default=settings.database_url, help="Async SQLAlchemy URL")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data")
    args = parser.parse_args()

    asyncio.run(seed(args.count, args.database_url, args.seed))


if __name__ == "__main__":
    main()
