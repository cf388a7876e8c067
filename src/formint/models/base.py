"""Base models and common types for formint."""

import math
from enum import Enum

from pydantic import BaseModel, Field


class ElementType(str, Enum):
    """Types of synthesized form elements on a page."""

    LABEL = "label"
    INPUT = "input"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    TABLE = "table"
    TEXT = "text"


class FieldType(str, Enum):
    """Input types of a generated form field."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"
    SIGNATURE = "signature"
    FILE = "file"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"


class ValidationRuleType(str, Enum):
    """Kinds of field validation rules."""

    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CUSTOM = "custom"


class BoundingBox(BaseModel):
    """Bounding box coordinates (normalized 0-1 or absolute pixels)."""

    left: float = Field(default=0.0, description="Left edge X coordinate")
    top: float = Field(default=0.0, description="Top edge Y coordinate")
    width: float = Field(default=0.0, description="Box width")
    height: float = Field(default=0.0, description="Box height")
    unit: str = Field(default="normalized", description="'normalized' (0-1) or 'pixels'")

    class Config:
        frozen = True

    @property
    def right(self) -> float:
        """Right edge X coordinate."""
        return self.left + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge Y coordinate."""
        return self.top + self.height

    def corner_distance(self, other: "BoundingBox", scale: tuple[float, float] = (1.0, 1.0)) -> float:
        """Euclidean distance between the top-left corners of two boxes.

        Args:
            other: Box to measure against.
            scale: Horizontal and vertical multipliers applied to the deltas.
        """
        dx = (self.left - other.left) * scale[0]
        dy = (self.top - other.top) * scale[1]
        return math.hypot(dx, dy)

    def to_pixels(self, page_width: float, page_height: float) -> "BoundingBox":
        """Convert normalized coordinates to pixel coordinates."""
        if self.unit == "pixels":
            return self
        return BoundingBox(
            left=self.left * page_width,
            top=self.top * page_height,
            width=self.width * page_width,
            height=self.height * page_height,
            unit="pixels",
        )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))
