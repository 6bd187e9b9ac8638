"""Seed the database with initial data."""
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from homeease.core.config import settings
from homeease.core.security import get_password_hash
from homeease.db.db_models import ServiceCategory, City, User, UserRole, UserStatus

logger = logging.getLogger(__name__)

CATEGORIES = [
    "Electrician",
    "Plumber",
    "Cleaner",
    "Carpenter",
    "Painter",
    "AC Repair",
    "Mechanic",
    "Gardener",
]

CITIES = [
    "Karachi",
    "Lahore",
    "Islamabad",
    "Rawalpindi",
    "Faisalabad",
    "Multan",
    "Peshawar",
    "Quetta",
]


async def seed_data(db: AsyncSession):
    """Insert categories, cities and the admin account if missing."""
    result = await db.execute(select(ServiceCategory.name))
    existing = set(result.scalars().all())
    missing = [name for name in CATEGORIES if name not in existing]
    for name in missing:
        db.add(ServiceCategory(name=name))
    if missing:
        logger.info("Seeded %d service categories", len(missing))

    result = await db.execute(select(City.name))
    existing = set(result.scalars().all())
    missing = [name for name in CITIES if name not in existing]
    for name in missing:
        db.add(City(name=name))
    if missing:
        logger.info("Seeded %d cities", len(missing))

    admin_email = settings.ADMIN_EMAIL.lower()
    result = await db.execute(select(User).where(User.email == admin_email))
    if not result.scalars().first():
        db.add(User(
            name="Admin",
            email=admin_email,
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN.value,
            status=UserStatus.ACTIVE.value,
        ))
        logger.info("Seeded admin account %s", admin_email)

    await db.commit()
