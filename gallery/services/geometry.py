"""
Bounding box geometry for person regions on an image.

Boxes are axis-aligned rectangles in pixels of the image's stored
width/height: (x, y) is the top-left corner.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import ValidationError

INVALID_COORDINATES = "Invalid bounding box coordinates"
EXCEEDS_DIMENSIONS = "Bounding box exceeds image dimensions"


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_columns(cls, x, y, width, height) -> Optional["BoundingBox"]:
        """Build a box from nullable link columns (None unless all four are set)"""
        if x is None or y is None or width is None or height is None:
            return None
        return cls(x=x, y=y, width=width, height=height)


def validate_bounding_box(
    box: BoundingBox,
    image_width: Optional[int] = None,
    image_height: Optional[int] = None
) -> None:
    """Raise ValidationError unless the box is a positive-area rectangle inside the image.

    The containment check needs both image dimensions; when either is unknown
    only the coordinate check applies.
    """
    if box.x < 0 or box.y < 0 or box.width <= 0 or box.height <= 0:
        raise ValidationError(INVALID_COORDINATES)

    if image_width and image_height:
        if box.right > image_width or box.bottom > image_height:
            raise ValidationError(EXCEEDS_DIMENSIONS)
