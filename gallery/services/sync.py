"""
Sync service - reconciles the images directory with Image rows

Deactivation policy: rows are only ever deactivated after the registration
pass, and only when their file was not listed on disk. A file that is present
but fails to decode keeps its previous row untouched.
"""
import logging
from dataclasses import dataclass, field
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Image, utcnow
from .image_store import ImageStore, probe_image_async, calculate_checksum_async
from .locks import image_locks

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    synced: int = 0
    errors: list[str] = field(default_factory=list)
    deactivated: int = 0

    def to_dict(self) -> dict:
        return {
            "synced": self.synced,
            "errors": list(self.errors),
            "deactivated": self.deactivated,
        }


def list_filesystem_images(store: ImageStore) -> list[str]:
    """Supported image filenames on disk, sorted; empty if the directory is missing"""
    return store.list_images()


async def register_image(filename: str, db: AsyncSession, store: ImageStore) -> Image | None:
    """Create or refresh the Image row for a file in the images directory.

    Returns None when the file cannot be read, decoded or saved.
    """
    try:
        path = store.get_image_path(filename)
        data = await store.read_image(filename)
        probe = await probe_image_async(data)
        checksum = await calculate_checksum_async(data)
    except Exception as e:
        logger.error(f"Error registering image {filename}: {e}")
        return None

    try:
        result = await db.execute(select(Image).where(Image.filename == filename))
        image = result.scalar_one_or_none()

        if image:
            # File is known present again
            image.size = len(data)
            image.width = probe.width
            image.height = probe.height
            image.mime_type = probe.mime_type
            image.checksum = checksum
            image.is_active = True
            image.updated_at = utcnow()
        else:
            image = Image(
                filename=filename,
                original_name=filename,
                path=str(path),
                size=len(data),
                width=probe.width,
                height=probe.height,
                mime_type=probe.mime_type,
                checksum=checksum,
                is_active=True,
                tags=[],
            )
            db.add(image)

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving image {filename}: {e}")
        return None

    return image


async def deactivate_missing_images(present: list[str], db: AsyncSession) -> int:
    """Mark active rows whose file is not in `present` as inactive"""
    result = await db.execute(
        update(Image)
        .where(Image.is_active == True, Image.filename.not_in(present))
        .values(is_active=False, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    return result.rowcount or 0


async def sync_images(
    db: AsyncSession,
    store: ImageStore,
    deactivate_missing: bool = True
) -> SyncResult:
    """Register every image file on disk; one bad file never stops the batch.

    Only one sync runs at a time; a second caller waits and then re-checks
    every file against what the first one stored.
    """
    result = SyncResult()

    async with image_locks.hold(("sync",)):
        filenames = list_filesystem_images(store)

        for filename in filenames:
            image = await register_image(filename, db, store)
            if image is not None:
                result.synced += 1
            else:
                result.errors.append(f"Failed to register {filename}")

        if deactivate_missing:
            result.deactivated = await deactivate_missing_images(filenames, db)

    logger.info(
        f"Synced {result.synced} images, {len(result.errors)} errors, "
        f"{result.deactivated} deactivated"
    )
    return result
