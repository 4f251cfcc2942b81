"""Seed a default team, admin user and sample inventory owners."""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import hash_password
from app.db.session import AsyncSessionLocal
from app.models.storage_location import StorageLocation
from app.models.supplier import Supplier
from app.models.team import Team
from app.models.user import User

logger = logging.getLogger(__name__)

# (name, contact_person, email)
DEFAULT_SUPPLIERS = [
    ("Acme Components", "Jane Doe", "orders@acme.example.com"),
]

# (location_code, name)
DEFAULT_LOCATIONS = [
    ("WH-A-01", "Warehouse A, Shelf 1"),
]


async def seed_team_and_admin(db: AsyncSession) -> User:
    """Insert the default team and admin user if they do not exist yet."""
    team = (await db.execute(select(Team).where(Team.name == settings.SEED_TEAM_NAME))).scalars().first()
    if team is None:
        team = Team(name=settings.SEED_TEAM_NAME)
        db.add(team)
        await db.flush()
        logger.info("Seeded team: %s", team.name)

    admin = (
        await db.execute(select(User).where(User.email == settings.SEED_ADMIN_EMAIL))
    ).scalars().first()
    if admin is None:
        admin = User(
            email=settings.SEED_ADMIN_EMAIL,
            name="Admin",
            password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
            role="ADMIN",
            team_id=team.id,
            is_active=True,
        )
        db.add(admin)
        await db.flush()
        logger.info("Seeded admin user: %s", admin.email)
    else:
        logger.info("Admin user already exists: %s, skipping", admin.email)
    return admin


async def seed_inventory_owners(db: AsyncSession, admin: User) -> None:
    for name, contact_person, email in DEFAULT_SUPPLIERS:
        existing = await db.execute(
            select(Supplier).where(Supplier.team_id == admin.team_id, Supplier.name == name)
        )
        if existing.scalars().first() is None:
            db.add(Supplier(
                name=name,
                contact_person=contact_person,
                email=email,
                team_id=admin.team_id,
                created_by=admin.id,
            ))
            logger.info("Seeded supplier: %s", name)

    for code, name in DEFAULT_LOCATIONS:
        existing = await db.execute(
            select(StorageLocation).where(
                StorageLocation.team_id == admin.team_id, StorageLocation.location_code == code
            )
        )
        if existing.scalars().first() is None:
            db.add(StorageLocation(
                location_code=code,
                name=name,
                team_id=admin.team_id,
                created_by=admin.id,
            ))
            logger.info("Seeded storage location: %s", code)


async def run_seed() -> None:
    async with AsyncSessionLocal() as db:
        admin = await seed_team_and_admin(db)
        await seed_inventory_owners(db, admin)
        await db.commit()
    logger.info("Seeding complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_seed())
