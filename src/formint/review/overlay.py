"""Overlay rendering of form elements on page images."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, TypeVar

from PIL import Image, ImageColor, ImageDraw, ImageFont

from formint.models import ElementType, FormElement, round_half_up
from formint.review.viewport import Viewport

logger = logging.getLogger(__name__)

T = TypeVar("T")

ELEMENT_COLORS: dict[ElementType, str] = {
    ElementType.LABEL: "#4CAF50",
    ElementType.INPUT: "#2196F3",
    ElementType.CHECKBOX: "#FF9800",
    ElementType.RADIO: "#FF9800",
    ElementType.SELECT: "#9C27B0",
    ElementType.TABLE: "#00BCD4",
    ElementType.TEXT: "#757575",
}


@dataclass
class RenderConfig:
    """Configuration for overlay rendering."""

    colors: dict[ElementType, str] = field(default_factory=lambda: dict(ELEMENT_COLORS))
    border_width: int = 2
    selected_color: str = "#2196F3"
    selected_width: int = 3
    fill_alpha: int = 32
    background: str = "#f5f5f5"
    show_boxes: bool = True
    show_confidence: bool = False


def _rgba(color: str, alpha: int) -> tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, alpha)


class OverlayRenderer:
    """Draws element boxes, confidence badges and the selection highlight."""

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self._font = ImageFont.load_default()

    def color_for(self, element: FormElement) -> str:
        return self.config.colors.get(element.type, ELEMENT_COLORS[ElementType.TEXT])

    def _draw_elements(
        self,
        draw: ImageDraw.ImageDraw,
        elements: Sequence[FormElement],
        viewport: Viewport,
        selected_id: Optional[str],
    ) -> None:
        for element in elements:
            x, y, w, h = viewport.to_display(element.bounding_box)
            rect = (x, y, x + w, y + h)
            selected = element.id == selected_id

            if self.config.show_boxes or selected:
                color = self.config.selected_color if selected else self.color_for(element)
                width = self.config.selected_width if selected else self.config.border_width
                draw.rectangle(rect, fill=_rgba(color, self.config.fill_alpha), outline=color, width=width)

            if self.config.show_confidence:
                badge = f"{round_half_up(element.confidence)}%"
                left, top, right, bottom = draw.textbbox((0, 0), badge, font=self._font)
                badge_w, badge_h = right - left + 4, bottom - top + 4
                badge_rect = (x, y - badge_h, x + badge_w, y)
                draw.rectangle(badge_rect, fill=_rgba(self.color_for(element), 220))
                draw.text((x + 2, y - badge_h + 2 - top), badge, fill="white", font=self._font)

    def render(
        self,
        page_image: Image.Image,
        elements: Sequence[FormElement],
        selected_id: Optional[str] = None,
    ) -> Image.Image:
        """Draw overlays directly on a page image at its natural size.

        Args:
            page_image: Page image.
            elements: Elements of that page.
            selected_id: Element to highlight.

        Returns:
            New RGB image with overlays.
        """
        base = page_image.convert("RGBA")
        overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        self._draw_elements(draw, elements, Viewport.identity(base.size), selected_id)
        return Image.alpha_composite(base, overlay).convert("RGB")

    def render_canvas(
        self,
        page_image: Image.Image,
        elements: Sequence[FormElement],
        canvas_size: tuple[int, int],
        viewport: Optional[Viewport] = None,
        selected_id: Optional[str] = None,
    ) -> Image.Image:
        """Draw a page fitted into a canvas, the way the review surface shows it.

        Args:
            page_image: Page image.
            elements: Elements of that page.
            canvas_size: Canvas size (width, height).
            viewport: Display geometry (fitted to the canvas by default).
            selected_id: Element to highlight.
        """
        viewport = viewport or Viewport.fit(page_image.size, canvas_size)
        canvas = Image.new("RGBA", canvas_size, self.config.background)

        scaled_size = (
            max(1, round(page_image.width * viewport.scale)),
            max(1, round(page_image.height * viewport.scale)),
        )
        scaled = page_image.convert("RGBA").resize(scaled_size)
        canvas.paste(scaled, (round(viewport.offset_x), round(viewport.offset_y)))

        overlay = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        self._draw_elements(draw, elements, viewport, selected_id)
        return Image.alpha_composite(canvas, overlay).convert("RGB")


class DrawScheduler:
    """Last-writer-wins arbitration between overlapping draw requests.

    Each request takes a ticket; only the newest ticket may commit, so a
    draw started before a newer request is dropped when it finishes.
    """

    def __init__(self):
        self._latest = 0
        self._lock = threading.Lock()

    def request(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest

    def commit(self, ticket: int, draw: Callable[[], T]) -> Optional[T]:
        """Run ``draw`` if the ticket is still the newest, else return None."""
        if not self.is_current(ticket):
            logger.debug("Draw %d superseded", ticket)
            return None
        return draw()
