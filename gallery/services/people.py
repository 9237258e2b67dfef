"""
People registry - create and list the people that can be tagged on images
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import Person

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken as UTC so they compare with aware ones
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_person(
    db: AsyncSession,
    name: str,
    birth_date: Optional[datetime] = None,
    death_date: Optional[datetime] = None,
    notes: Optional[str] = None
) -> Person:
    """Create a new person; the stored name is trimmed"""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")

    if birth_date and death_date and _as_utc(death_date) <= _as_utc(birth_date):
        raise ValidationError("Death date must be after birth date")

    person = Person(
        name=name.strip(),
        birth_date=birth_date,
        death_date=death_date,
        notes=notes or None,
    )
    db.add(person)
    await db.commit()

    logger.info(f"Created person {person.id} ({person.name})")
    return person


async def list_people(db: AsyncSession) -> list[Person]:
    """All people, most recently created first"""
    result = await db.execute(select(Person).order_by(desc(Person.created_at)))
    return list(result.scalars().all())


async def get_person(db: AsyncSession, person_id: str) -> Person:
    person = await db.get(Person, person_id)
    if not person:
        raise NotFoundError("Person not found")
    return person


async def get_stats(db: AsyncSession) -> dict:
    result = await db.execute(select(func.count(Person.id)))
    return {"total_people": result.scalar() or 0}
