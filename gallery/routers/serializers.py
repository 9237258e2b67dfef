"""
Shared response serializers for router endpoints.
"""
from ..models import Image, Person
from ..services.geometry import BoundingBox


def _iso(value):
    return value.isoformat() if value else None


def serialize_image(image: Image) -> dict:
    """Serialize an Image model to dict."""
    return {
        "id": image.id,
        "filename": image.filename,
        "original_name": image.original_name,
        "size": image.size,
        "width": image.width,
        "height": image.height,
        "mime_type": image.mime_type,
        "checksum": image.checksum,
        "tags": image.tags or [],
        "description": image.description,
        "date_taken": _iso(image.date_taken),
        "date_precision": image.date_precision.value if image.date_precision else None,
        "is_active": image.is_active,
        "url": image.url,
        "created_at": _iso(image.created_at),
        "updated_at": _iso(image.updated_at),
    }


def serialize_person(person: Person) -> dict:
    """Serialize a Person model to dict."""
    return {
        "id": person.id,
        "name": person.name,
        "birth_date": _iso(person.birth_date),
        "death_date": _iso(person.death_date),
        "notes": person.notes,
        "created_at": _iso(person.created_at),
        "updated_at": _iso(person.updated_at),
    }


def serialize_box(box: BoundingBox | None) -> dict | None:
    return box.to_dict() if box else None
