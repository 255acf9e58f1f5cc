"""
Database seeding script for development data.

Creates an ADMIN, a demo OWNER and a handful of Dhaka parcels at different
stages, with history backdated over the last week.
Run this script after the database is reachable and before first use.
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.core.config import settings
from backend.app.core.security import get_password_hash
from backend.app.db.session import Database
from backend.app.domain.parcels.lifecycle import ParcelLifecycleManager, utcnow
from backend.app.domain.parcels.tracking import HistoryRecord, Location
from backend.app.models.audit_log import AuditLog  # noqa: F401
from backend.app.models.enums import UserRole
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.user import User
from backend.app.services.parcel_store import ParcelStore, UserDirectory

# (location, latitude, longitude, status, age)
SAMPLE_PARCELS = {
    "TRK001234567": [
        ("Gulshan-1 Sorting Center", 23.7937, 90.4066, ParcelStatus.PICKED_UP, timedelta(days=7)),
        ("Banani Transit Hub", 23.7937, 90.4066, ParcelStatus.IN_TRANSIT, timedelta(days=6)),
        ("Dhanmondi Distribution Center", 23.7465, 90.3706, ParcelStatus.IN_TRANSIT, timedelta(days=5)),
        ("Mirpur Local Office", 23.8067, 90.3683, ParcelStatus.OUT_FOR_DELIVERY, timedelta(days=4)),
        ("Uttara Delivery Point", 23.8709, 90.3753, ParcelStatus.DELIVERED, timedelta(days=3)),
    ],
    "TRK002345678": [
        ("Motijheel Central Hub", 23.7289, 90.4154, ParcelStatus.PICKED_UP, timedelta(days=3)),
        ("Lalbagh Processing Center", 23.7183, 90.3956, ParcelStatus.IN_TRANSIT, timedelta(days=2)),
        ("Old Dhaka Transit Point", 23.7104, 90.4074, ParcelStatus.IN_TRANSIT, timedelta(days=1)),
        ("Shahbagh Local Office", 23.7371, 90.3714, ParcelStatus.OUT_FOR_DELIVERY, timedelta(hours=2)),
    ],
    "TRK003456789": [
        ("Farmgate Pickup Point", 23.7539, 90.3811, ParcelStatus.PICKED_UP, timedelta(days=1)),
        ("Dhanmondi Distribution Center", 23.7465, 90.3706, ParcelStatus.IN_TRANSIT, timedelta(hours=12)),
    ],
    "TRK004567890": [
        ("Mirpur Local Office", 23.8067, 90.3683, ParcelStatus.PICKED_UP, timedelta(days=4)),
        ("Uttara Delivery Point", 23.8709, 90.3753, ParcelStatus.EXCEPTION, timedelta(days=2)),
        ("Mirpur Local Office", 23.8067, 90.3683, ParcelStatus.RETURNED, timedelta(days=1)),
    ],
}


async def _ensure_user(users: UserDirectory, email, name, password, role, phone=None) -> User:
    existing = await users.get_by_email(email)
    if existing:
        print(f"ℹ️  {role.value.upper()} {email} already exists, skipping")
        return existing

    user = await users.save(User(
        email=email,
        name=name,
        phone=phone,
        hashed_password=get_password_hash(password),
        role=role,
        is_active=True
    ))
    print(f"✅ Created {role.value.upper()} user ({email} / {password})")
    return user


async def seed_data():
    """
    Seed users and sample parcels.

    Creates:
    - 1 ADMIN user
    - 1 OWNER user
    - 4 parcels owned by the OWNER (delivered, out for delivery, in transit, returned)
    """
    database = Database.from_settings(settings)
    await database.create_all()

    try:
        async with database.session_factory() as db:
            print("🌱 Starting seeding...")
            users = UserDirectory(db)
            store = ParcelStore(db)

            await _ensure_user(users, "admin@parceltracker.com", "Admin User", "admin123", UserRole.ADMIN)
            owner = await _ensure_user(
                users, "john.doe@example.com", "John Doe", "password123", UserRole.OWNER, phone="+8801712345678"
            )

            now = utcnow()
            manager = ParcelLifecycleManager(store, users)

            for tracking_number, steps in SAMPLE_PARCELS.items():
                if await store.exists_by_tracking_number(tracking_number):
                    print(f"ℹ️  Parcel {tracking_number} already exists, skipping")
                    continue

                records = [
                    HistoryRecord(location=Location(description, lat, lng), status=status, timestamp=now - age)
                    for description, lat, lng, status, age in steps
                ]
                parcel = await manager.import_history(tracking_number, owner.id, records)

                print(f"📦 Created parcel {tracking_number} ({parcel.status.value}, {len(parcel.history)} entries)")
    finally:
        await database.dispose()

    print("\n🎉 Seeding completed successfully!")
    print("\nSeeded users:")
    print("  - ADMIN: admin@parceltracker.com / admin123")
    print("  - OWNER: john.doe@example.com / password123")


if __name__ == "__main__":
    asyncio.run(seed_data())
