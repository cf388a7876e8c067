"""Page image models."""

from typing import Optional

from pydantic import BaseModel, Field


class PageImageInfo(BaseModel):
    """Information about a rendered or loaded page image."""

    page_number: int = Field(..., ge=1, description="1-indexed page number")
    width_pixels: int = Field(..., gt=0)
    height_pixels: int = Field(..., gt=0)
    scale: float = Field(default=1.0, gt=0, description="Render zoom relative to 72 DPI")
    image_path: Optional[str] = None
    format: str = Field(default="png")
    file_size_bytes: int = Field(default=0, ge=0)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width_pixels, self.height_pixels)
