"""
Image metadata service - lookups, listing, metadata edits and statistics
"""
import logging
from sqlalchemy import select, func, desc, case
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import Image, utcnow
from ..schemas import ImageUpdate

logger = logging.getLogger(__name__)


async def get_image(db: AsyncSession, image_id: str) -> Image:
    image = await db.get(Image, image_id)
    if not image:
        raise NotFoundError("Image not found")
    return image


async def get_image_by_filename(db: AsyncSession, filename: str) -> Image:
    result = await db.execute(select(Image).where(Image.filename == filename))
    image = result.scalar_one_or_none()
    if not image:
        raise NotFoundError("Image not found")
    return image


async def list_images(db: AsyncSession, include_inactive: bool = False) -> list[Image]:
    """Images newest first; only those present on disk unless include_inactive"""
    query = select(Image).order_by(desc(Image.created_at))
    if not include_inactive:
        query = query.where(Image.is_active == True)
    result = await db.execute(query)
    return list(result.scalars().all())


def _clean_tags(tags) -> list[str]:
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValidationError("Tags must be an array of strings")
    # Keep order, drop blanks and repeats
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


async def update_image(db: AsyncSession, image_id: str, patch: ImageUpdate) -> Image:
    """Apply the fields present in `patch`; omitted fields stay as they are"""
    image = await get_image(db, image_id)

    fields = patch.model_fields_set
    if not fields:
        raise ValidationError("No valid fields provided for update")

    if 'tags' in fields:
        image.tags = _clean_tags(patch.tags)
    if 'description' in fields:
        image.description = patch.description
    if 'date_taken' in fields:
        image.date_taken = patch.date_taken
    if 'date_precision' in fields:
        image.date_precision = patch.date_precision

    image.updated_at = utcnow()
    await db.commit()

    logger.info(f"Updated image {image_id}: {', '.join(sorted(fields))}")
    return image


async def get_stats(db: AsyncSession) -> dict:
    result = await db.execute(
        select(
            func.count(Image.id),
            func.sum(case((Image.is_active == True, 1), else_=0)),
            func.sum(case((Image.is_active == True, Image.size), else_=0)),
        )
    )
    total, active, total_size = result.one()
    total = total or 0
    active = active or 0
    total_size = total_size or 0

    return {
        "total_images": total,
        "active_images": active,
        "inactive_images": total - active,
        "total_size": total_size,
        "total_size_mb": round(total_size / (1024 * 1024), 2),
    }
