"""
Data Seeder for Chronose.
Populates the entry store with work and leave entries for demo purposes.
"""

import asyncio
import sys
import random
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chronose.domain.models import EntryStatus, EntryType
from chronose.infra.config import get_settings
from chronose.infra.db import init_db
from chronose.infra.repository import EntryRepository

PROJECTS = {
    "Website Relaunch": ["Design", "Frontend", "Review"],
    "Internal Tools": ["Timesheets", "Reporting"],
    "Support": ["Tickets", "Calls"],
}


async def seed(days: int = 30):
    settings = get_settings()
    print(f"Seeding {days} days of entries for user '{settings.user_id}'...")
    await init_db(settings.database_url)
    repo = EntryRepository(enabled=True)

    today = date.today()
    created = 0
    for offset in range(days, 0, -1):
        day = today - timedelta(days=offset)
        if day.weekday() > 4:
            continue

        # Older entries have gone through approval already
        status = EntryStatus.APPROVED if offset > 14 else random.choice(
            [EntryStatus.DRAFT, EntryStatus.SUBMITTED]
        )

        if random.random() < 0.08:
            payload = {
                "user_id": settings.user_id,
                "date": day,
                "type": EntryType.LEAVE,
                "status": status,
                "leave_type": random.choice(["casual", "sick", "vacation"]),
                "leave_duration": "full",
                "leave_hours": 8.0,
                "hours": 8.0,
                "leave_reason": "Seeded leave",
            }
        else:
            project = random.choice(list(PROJECTS))
            payload = {
                "user_id": settings.user_id,
                "date": day,
                "type": EntryType.WORK,
                "status": status,
                "project": project,
                "task": random.choice(PROJECTS[project]),
                "hours": round(random.uniform(6.0, 9.5) * 4) / 4,
                "notes": "Seeded entry",
            }

        result = await repo.create(payload)
        if not result.ok:
            print(f"Error: {result.error.message}")
            sys.exit(1)
        created += 1

    print(f"Created {created} entries.")


if __name__ == "__main__":
    asyncio.run(seed())
