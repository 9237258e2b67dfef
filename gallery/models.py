"""
Gallery database models

- Image: one row per file ever seen in the images directory (never deleted,
  only deactivated when the file disappears)
- Person: people that can be tagged onto images
- ImagePerson: person <-> image link, optionally with a pixel bounding box
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, JSON, CheckConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
import uuid

from .database import Base
from .services.geometry import BoundingBox


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DatePrecision(str, enum.Enum):
    """How exact a recorded capture date is"""
    hour = "hour"
    day = "day"
    month = "month"
    year = "year"
    decade = "decade"


class Image(Base):
    """Image file in the gallery directory plus its editable metadata"""
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=generate_id)
    filename = Column(String(255), unique=True, nullable=False, index=True)  # Name inside images dir
    original_name = Column(String(255), nullable=True)
    path = Column(String(500), nullable=False)
    size = Column(Integer, nullable=False)  # Bytes
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=False)
    checksum = Column(String(64), nullable=True)  # SHA256
    is_active = Column(Boolean, default=True, nullable=False, index=True)  # File present at last sync

    # User metadata
    description = Column(Text, nullable=True)
    tags = Column(JSON, default=list, nullable=True)
    date_taken = Column(DateTime(timezone=True), nullable=True)
    date_precision = Column(Enum(DatePrecision), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    people_links = relationship("ImagePerson", back_populates="image", cascade="all, delete-orphan")

    @property
    def url(self):
        """Get URL to serve the image"""
        return f"/api/images/{self.id}/file"


class Person(Base):
    __tablename__ = "people"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    birth_date = Column(DateTime(timezone=True), nullable=True)
    death_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    image_links = relationship("ImagePerson", back_populates="person", cascade="all, delete-orphan")


class ImagePerson(Base):
    """Person tagged on an image, with an optional region in image pixels"""
    __tablename__ = "image_people"

    image_id = Column(String(36), ForeignKey("images.id", ondelete="CASCADE"), primary_key=True)
    person_id = Column(String(36), ForeignKey("people.id", ondelete="CASCADE"), primary_key=True, index=True)
    bounding_box_x = Column(Integer, nullable=True)
    bounding_box_y = Column(Integer, nullable=True)
    bounding_box_width = Column(Integer, nullable=True)
    bounding_box_height = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    image = relationship("Image", back_populates="people_links")
    person = relationship("Person", back_populates="image_links")

    __table_args__ = (
        # Box columns are set together or not at all
        CheckConstraint(
            "(bounding_box_x IS NULL AND bounding_box_y IS NULL"
            " AND bounding_box_width IS NULL AND bounding_box_height IS NULL)"
            " OR (bounding_box_x IS NOT NULL AND bounding_box_y IS NOT NULL"
            " AND bounding_box_width IS NOT NULL AND bounding_box_height IS NOT NULL)",
            name='ck_image_people_bounding_box_complete'
        ),
    )

    @property
    def bounding_box(self) -> BoundingBox | None:
        return BoundingBox.from_columns(
            self.bounding_box_x,
            self.bounding_box_y,
            self.bounding_box_width,
            self.bounding_box_height,
        )
