"""Base models and common types for the OCR document tree."""

from enum import Enum

from pydantic import BaseModel, Field


class OcrFeature(str, Enum):
    """Optional capabilities a page may make use of."""

    POLYGONS = "POLYGONS"
    BASELINE = "BASELINE"
    CONFIDENCE = "CONFIDENCE"
    CHOICES = "CHOICES"
    HYPHEN = "HYPHEN"


class OcrBaseModel(BaseModel):
    """Base class for all document tree models."""

    class Config:
        from_attributes = True
        extra = "forbid"


class Point(OcrBaseModel):
    """A point on the page, in pixels with the origin in the upper left."""

    x: float
    y: float


class Dimensions(OcrBaseModel):
    """Width and height of a page, used as a scaling reference."""

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class BoundingBox(OcrBaseModel):
    """Axis-aligned box in absolute pixel coordinates."""

    x: float = Field(..., description="Left edge X coordinate")
    y: float = Field(..., description="Top edge Y coordinate")
    width: float = Field(..., description="Box width")
    height: float = Field(..., description="Box height")

    @property
    def x2(self) -> float:
        """Right edge X coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> float:
        """Bottom edge Y coordinate."""
        return self.y + self.height

    @classmethod
    def from_corners(
        cls, left: float, top: float, right: float, bottom: float
    ) -> "BoundingBox":
        """Build a box from its upper-left and lower-right corners."""
        return cls(x=left, y=top, width=right - left, height=bottom - top)

    def scaled(self, factor: float) -> "BoundingBox":
        """Return a copy with every coordinate multiplied by ``factor``."""
        if factor == 1:
            return self
        return BoundingBox(
            x=self.x * factor,
            y=self.y * factor,
            width=self.width * factor,
            height=self.height * factor,
        )


Polygon = list[Point]
