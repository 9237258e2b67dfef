"""
Link service - tags people onto images, optionally with a bounding box

A (person, image) pair is either unlinked or linked exactly once. Linking an
already linked pair is a conflict and unlinking an unlinked pair is an
error; changing a box means unlink then link again.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, NotFoundError
from ..models import Image, Person, ImagePerson
from .geometry import BoundingBox, validate_bounding_box
from .locks import image_locks

logger = logging.getLogger(__name__)

ALREADY_LINKED = "Person is already linked to this image"
NO_LINK = "No link found between this person and image"


@dataclass
class LinkedPerson:
    person: Person
    bounding_box: Optional[BoundingBox]


@dataclass
class LinkedImage:
    image: Image
    bounding_box: Optional[BoundingBox]


async def link_person_to_image(
    db: AsyncSession,
    person_id: str,
    image_id: str,
    bounding_box: Optional[BoundingBox] = None
) -> ImagePerson:
    """Link a person to an image.

    Checks run in a fixed order: image exists, person exists, box geometry,
    duplicate link. Lookups and insert share one transaction; a uniqueness
    violation from a concurrent insert surfaces as the same ConflictError.
    """
    async with image_locks.hold(("link", image_id, person_id)):
        try:
            image = await db.get(Image, image_id)
            if not image:
                raise NotFoundError("Image not found")

            person = await db.get(Person, person_id)
            if not person:
                raise NotFoundError("Person not found")

            if bounding_box is not None:
                validate_bounding_box(bounding_box, image.width, image.height)

            existing = await db.execute(
                select(ImagePerson).where(
                    ImagePerson.image_id == image_id,
                    ImagePerson.person_id == person_id
                )
            )
            if existing.scalar_one_or_none():
                raise ConflictError(ALREADY_LINKED)

            link = ImagePerson(
                image_id=image_id,
                person_id=person_id,
                bounding_box_x=bounding_box.x if bounding_box else None,
                bounding_box_y=bounding_box.y if bounding_box else None,
                bounding_box_width=bounding_box.width if bounding_box else None,
                bounding_box_height=bounding_box.height if bounding_box else None,
            )
            db.add(link)
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(ALREADY_LINKED) from e

        await db.commit()

    logger.info(f"Linked person {person_id} to image {image_id}")
    return link


async def unlink_person_from_image(db: AsyncSession, person_id: str, image_id: str) -> None:
    """Remove a link; a second unlink of the same pair fails"""
    result = await db.execute(
        delete(ImagePerson).where(
            ImagePerson.image_id == image_id,
            ImagePerson.person_id == person_id
        )
    )
    if not result.rowcount:
        await db.commit()
        raise NotFoundError(NO_LINK)

    await db.commit()
    logger.info(f"Unlinked person {person_id} from image {image_id}")


async def get_people_for_image(db: AsyncSession, image_id: str) -> list[LinkedPerson]:
    """People linked to an image with their boxes, in link-creation order"""
    image = await db.get(Image, image_id)
    if not image:
        raise NotFoundError("Image not found")

    result = await db.execute(
        select(Person, ImagePerson)
        .join(ImagePerson, ImagePerson.person_id == Person.id)
        .where(ImagePerson.image_id == image_id)
        .order_by(ImagePerson.created_at, ImagePerson.person_id)
    )
    return [LinkedPerson(person=person, bounding_box=link.bounding_box) for person, link in result.all()]


async def get_images_for_person(db: AsyncSession, person_id: str) -> list[LinkedImage]:
    """Images a person is linked to with their boxes, in link-creation order"""
    person = await db.get(Person, person_id)
    if not person:
        raise NotFoundError("Person not found")

    result = await db.execute(
        select(Image, ImagePerson)
        .join(ImagePerson, ImagePerson.image_id == Image.id)
        .where(ImagePerson.person_id == person_id)
        .order_by(ImagePerson.created_at, ImagePerson.image_id)
    )
    return [LinkedImage(image=image, bounding_box=link.bounding_box) for image, link in result.all()]
