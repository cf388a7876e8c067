"""Coordinate mapping between normalized boxes and a display surface.

A page image of natural size ``(W, H)`` is drawn at uniform scale ``s`` with
offset ``(ox, oy)``. A normalized box maps to the display rectangle
``(ox + left*W*s, oy + top*H*s, width*W*s, height*H*s)``. Hit-testing
compares display points against those rectangles.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from formint.config import settings
from formint.models import BoundingBox, FormElement

Rect = tuple[float, float, float, float]


@dataclass(frozen=True)
class Viewport:
    """Display geometry of one page image."""

    image_width: int
    image_height: int
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def fit(
        cls,
        image_size: tuple[int, int],
        canvas_size: tuple[int, int],
        margin: Optional[float] = None,
    ) -> "Viewport":
        """Fit an image inside a canvas, centered.

        Args:
            image_size: Natural image size (width, height).
            canvas_size: Canvas size (width, height).
            margin: Share of the limiting canvas axis the image occupies
                (default from settings, 0.9).
        """
        margin = settings.fit_margin if margin is None else margin
        image_width, image_height = image_size
        canvas_width, canvas_height = canvas_size
        if image_width <= 0 or image_height <= 0:
            return cls(image_width, image_height, 0.0, canvas_width / 2, canvas_height / 2)

        scale = min(canvas_width / image_width, canvas_height / image_height) * margin
        return cls(
            image_width=image_width,
            image_height=image_height,
            scale=scale,
            offset_x=(canvas_width - image_width * scale) / 2,
            offset_y=(canvas_height - image_height * scale) / 2,
        )

    @classmethod
    def identity(cls, image_size: tuple[int, int]) -> "Viewport":
        """Viewport that draws onto the page image itself."""
        return cls(image_size[0], image_size[1])

    def zoom(self, factor: float, anchor: Optional[tuple[float, float]] = None) -> "Viewport":
        """Scale by a factor, keeping the anchor display point fixed."""
        ax, ay = anchor if anchor is not None else (self.offset_x, self.offset_y)
        return replace(
            self,
            scale=self.scale * factor,
            offset_x=ax - (ax - self.offset_x) * factor,
            offset_y=ay - (ay - self.offset_y) * factor,
        )

    def pan(self, dx: float, dy: float) -> "Viewport":
        return replace(self, offset_x=self.offset_x + dx, offset_y=self.offset_y + dy)

    def to_display(self, box: BoundingBox) -> Rect:
        """Display rectangle (x, y, width, height) for a normalized box."""
        sx = self.image_width * self.scale
        sy = self.image_height * self.scale
        return (
            self.offset_x + box.left * sx,
            self.offset_y + box.top * sy,
            box.width * sx,
            box.height * sy,
        )

    def to_normalized(self, x: float, y: float) -> Optional[tuple[float, float]]:
        """Normalized page coordinates of a display point.

        Returns None when the viewport has no area.
        """
        sx = self.scale * self.image_width
        sy = self.scale * self.image_height
        if sx <= 0 or sy <= 0:
            return None
        return ((x - self.offset_x) / sx, (y - self.offset_y) / sy)

    def hit_test(self, x: float, y: float, elements: Sequence[FormElement]) -> Optional[FormElement]:
        """First element, in list order, whose display rectangle contains a point.

        Rectangles come from ``to_display``, the same mapping the overlay
        draws with, and their edges count as inside. Returns None for no
        selection or a viewport with no area.
        """
        if self.scale <= 0 or self.image_width <= 0 or self.image_height <= 0:
            return None
        for element in elements:
            left, top, width, height = self.to_display(element.bounding_box)
            if left <= x <= left + width and top <= y <= top + height:
                return element
        return None
