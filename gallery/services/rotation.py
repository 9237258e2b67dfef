"""
Rotation - turns an image file in place and refreshes its stored metadata
"""
import logging
from PIL import UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import GalleryError, NotFoundError, ValidationError
from ..models import Image
from .image_store import ImageStore, is_supported_image, rotate_image_bytes_async
from .locks import image_locks
from .sync import register_image

logger = logging.getLogger(__name__)

VALID_DEGREES = (90, 180, 270)


async def rotate_image(db: AsyncSession, store: ImageStore, image: Image, degrees: int) -> Image:
    """Rotate an image clockwise by 90, 180 or 270 degrees.

    The file is overwritten and re-registered, so width/height swap for 90
    and 270 and size/checksum follow the new bytes. Rotations of the same
    image are serialized.
    """
    if degrees not in VALID_DEGREES:
        raise ValidationError("Invalid rotation degrees. Must be 90, 180, or 270.")

    filename = image.filename
    if not is_supported_image(filename):
        raise ValidationError("File is not a supported image format")

    async with image_locks.hold(("image", image.id)):
        if not store.image_exists(filename):
            raise NotFoundError("Image file not found")

        data = await store.read_image(filename)
        try:
            rotated = await rotate_image_bytes_async(data, degrees)
        except (UnidentifiedImageError, OSError) as e:
            # Unreadable header or truncated pixel data
            raise ValidationError("File could not be decoded as an image") from e

        await store.write_image(filename, rotated)
        updated = await register_image(filename, db, store)

    if updated is None:
        raise GalleryError(f"Failed to refresh metadata for {filename} after rotation")

    logger.info(f"Rotated {filename} by {degrees} degrees -> {updated.width}x{updated.height}")
    return updated
