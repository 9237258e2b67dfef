"""
Image endpoints: list, stats, sync, single image metadata, rotation, people

IMPORTANT: Route ordering matters in FastAPI!
Static routes like /stats and /sync MUST be defined BEFORE dynamic routes
like /{image_id}.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import ImageUpdate, RotateRequest
from ..services import images as image_service
from ..services import links as link_service
from ..services.image_store import ImageStore, get_image_store
from ..services.rotation import rotate_image
from ..services.sync import sync_images
from .serializers import serialize_image, serialize_person, serialize_box

router = APIRouter()


# =============================================================================
# Static routes (MUST be defined before /{image_id} routes)
# =============================================================================

@router.get("")
async def list_images(include_inactive: bool = False, db: AsyncSession = Depends(get_db)):
    """List images, newest first"""
    images = await image_service.list_images(db, include_inactive=include_inactive)
    return {
        "images": [serialize_image(image) for image in images],
        "count": len(images)
    }


@router.get("/stats")
async def image_stats(db: AsyncSession = Depends(get_db)):
    """Get image statistics"""
    return {"stats": await image_service.get_stats(db)}


@router.post("/sync")
async def sync(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Reconcile the images directory with the database"""
    settings = request.app.state.settings
    result = await sync_images(db, store, deactivate_missing=settings.sync_deactivate_missing)
    return {
        "message": f"Successfully synced {result.synced} images",
        **result.to_dict()
    }


# =============================================================================
# Dynamic routes (/{image_id}/...)
# =============================================================================

@router.get("/{image_id}")
async def get_image(image_id: str, db: AsyncSession = Depends(get_db)):
    """Get single image details"""
    image = await image_service.get_image(db, image_id)
    return {"image": serialize_image(image)}


@router.patch("/{image_id}")
async def update_image(image_id: str, patch: ImageUpdate, db: AsyncSession = Depends(get_db)):
    """Update tags, description and capture date of an image"""
    image = await image_service.update_image(db, image_id, patch)
    return {
        "message": "Image updated successfully",
        "image": serialize_image(image)
    }


@router.get("/{image_id}/file")
async def get_image_file(
    image_id: str,
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Serve the image file"""
    image = await image_service.get_image(db, image_id)
    if not store.image_exists(image.filename):
        raise HTTPException(status_code=404, detail="Image file not found")
    return FileResponse(store.get_image_path(image.filename), media_type=image.mime_type)


@router.post("/{image_id}/rotate")
async def rotate(
    image_id: str,
    body: RotateRequest,
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store)
):
    """Rotate the image file clockwise by 90, 180 or 270 degrees"""
    image = await image_service.get_image(db, image_id)
    image = await rotate_image(db, store, image, body.degrees)
    return {
        "message": f"Image rotated {body.degrees} degrees",
        "image": serialize_image(image)
    }


@router.get("/{image_id}/people")
async def get_image_people(image_id: str, db: AsyncSession = Depends(get_db)):
    """People linked to an image, with their bounding boxes"""
    linked = await link_service.get_people_for_image(db, image_id)
    return {
        "people": [
            {**serialize_person(item.person), "bounding_box": serialize_box(item.bounding_box)}
            for item in linked
        ],
        "count": len(linked)
    }
