"""
Shared Pydantic models for request bodies.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from .models import DatePrecision
from .services.geometry import BoundingBox


class ImageUpdate(BaseModel):
    """Patch for image metadata.

    Only fields present in the request are applied; an explicit null clears
    the stored value (see `model_fields_set`).
    """
    tags: Optional[List[str]] = None
    description: Optional[str] = None
    date_taken: Optional[datetime] = None
    date_precision: Optional[DatePrecision] = None


class RotateRequest(BaseModel):
    # Checked by the rotation service so bad values get the same error as elsewhere
    degrees: int


class PersonCreate(BaseModel):
    name: str
    birth_date: Optional[datetime] = None
    death_date: Optional[datetime] = None
    notes: Optional[str] = None


class BoundingBoxIn(BaseModel):
    x: int
    y: int
    width: int
    height: int

    def to_box(self) -> BoundingBox:
        return BoundingBox(x=self.x, y=self.y, width=self.width, height=self.height)


class LinkRequest(BaseModel):
    person_id: str
    image_id: str
    bounding_box: Optional[BoundingBoxIn] = None
