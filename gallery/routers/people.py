"""
People endpoints: registry plus linking people to images
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import PersonCreate, LinkRequest
from ..services import people as people_service
from ..services import links as link_service
from .serializers import serialize_image, serialize_person, serialize_box

router = APIRouter()


@router.get("")
async def list_people(db: AsyncSession = Depends(get_db)):
    """List people, most recently created first"""
    people = await people_service.list_people(db)
    return {
        "people": [serialize_person(person) for person in people],
        "count": len(people)
    }


@router.post("", status_code=201)
async def create_person(body: PersonCreate, db: AsyncSession = Depends(get_db)):
    """Create a new person"""
    person = await people_service.create_person(
        db,
        name=body.name,
        birth_date=body.birth_date,
        death_date=body.death_date,
        notes=body.notes
    )
    return {"person": serialize_person(person)}


@router.get("/stats")
async def people_stats(db: AsyncSession = Depends(get_db)):
    return {"stats": await people_service.get_stats(db)}


@router.post("/link-to-image")
async def link_to_image(body: LinkRequest, db: AsyncSession = Depends(get_db)):
    """Link a person to an image, optionally with a bounding box"""
    await link_service.link_person_to_image(
        db,
        person_id=body.person_id,
        image_id=body.image_id,
        bounding_box=body.bounding_box.to_box() if body.bounding_box else None
    )
    return {"message": "Person successfully linked to image"}


@router.delete("/link-to-image")
async def unlink_from_image(
    person_id: str = Query(...),
    image_id: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    """Remove the link between a person and an image"""
    await link_service.unlink_person_from_image(db, person_id, image_id)
    return {"message": "Person successfully unlinked from image"}


@router.get("/{person_id}")
async def get_person(person_id: str, db: AsyncSession = Depends(get_db)):
    person = await people_service.get_person(db, person_id)
    return {"person": serialize_person(person)}


@router.get("/{person_id}/images")
async def get_person_images(person_id: str, db: AsyncSession = Depends(get_db)):
    """Images a person is linked to, with their bounding boxes"""
    linked = await link_service.get_images_for_person(db, person_id)
    return {
        "images": [
            {**serialize_image(item.image), "bounding_box": serialize_box(item.bounding_box)}
            for item in linked
        ],
        "count": len(linked)
    }
