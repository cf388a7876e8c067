"""Interactive review session over a processed document.

Holds the page-to-elements partition, the active page and selection, and
the generated fields. Every page that has been processed has an explicit
entry, empty when the page failed or had no elements, so a page never
shows another page's elements.
"""

import logging
from typing import Optional, Union

from PIL import Image

from formint.config import settings
from formint.exceptions import PageImageError
from formint.models import (
    ElementType,
    FormElement,
    GeneratedField,
    PageOutcome,
    ProcessingResult,
    Section,
    Table,
)
from formint.pipeline.stage_fields import FieldSynthesizer, SynthesisResult
from formint.review.overlay import DrawScheduler, OverlayRenderer
from formint.review.page_images import PageImageSource
from formint.review.viewport import Viewport

logger = logging.getLogger(__name__)


class ReviewSession:
    """Multi-page aggregator and review state."""

    def __init__(
        self,
        synthesizer: Optional[FieldSynthesizer] = None,
        images: Optional[PageImageSource] = None,
        renderer: Optional[OverlayRenderer] = None,
        canvas_size: tuple[int, int] = (1200, 900),
    ):
        """Initialize session.

        Args:
            synthesizer: Field synthesizer (defaults from settings).
            images: Page image source for drawing and threshold scaling.
            renderer: Overlay renderer for drawing.
            canvas_size: Default display surface size.
        """
        self.synthesizer = synthesizer or FieldSynthesizer()
        self.images = images
        self.renderer = renderer or OverlayRenderer()
        self.canvas_size = canvas_size
        self.scheduler = DrawScheduler()

        self.elements_by_page: dict[int, list[FormElement]] = {}
        self.tables_by_page: dict[int, list[Table]] = {}
        self.page_errors: dict[int, str] = {}
        self.image_errors: dict[int, str] = {}

        self.current_page = 1
        self.selected_element: Optional[FormElement] = None
        self.fields: list[GeneratedField] = []
        self.sections: list[Section] = []
        self.last_frame: Optional[Image.Image] = None

    @classmethod
    def from_result(cls, result: ProcessingResult, **kwargs) -> "ReviewSession":
        """Build a session from a finished processing run."""
        session = cls(**kwargs)
        for _, outcome in sorted(result.pages.items()):
            session.add_page(outcome, regenerate=False)
        session.regenerate()
        return session

    # ------------------------------------------------------------------
    # Page partition
    # ------------------------------------------------------------------

    def add_page(self, outcome: PageOutcome, regenerate: bool = True) -> None:
        """Record one page's outcome as it finishes processing."""
        self.elements_by_page[outcome.page_number] = list(outcome.elements)
        self.tables_by_page[outcome.page_number] = list(outcome.tables)
        if outcome.ok:
            self.page_errors.pop(outcome.page_number, None)
        else:
            self.page_errors[outcome.page_number] = outcome.error
            logger.warning("Page %d has no elements: %s", outcome.page_number, outcome.error)
        if regenerate:
            self.regenerate()

    @property
    def page_numbers(self) -> list[int]:
        return sorted(self.elements_by_page)

    @property
    def total_pages(self) -> int:
        return len(self.elements_by_page)

    def elements_for_page(self, page_number: int) -> list[FormElement]:
        """Elements of one page; empty for failed or unknown pages."""
        return self.elements_by_page.get(page_number, [])

    @property
    def all_elements(self) -> list[FormElement]:
        """Every element in page order."""
        return [e for page in self.page_numbers for e in self.elements_by_page[page]]

    @property
    def uncertain_elements(self) -> list[FormElement]:
        """Elements below the low-confidence threshold."""
        threshold = self.synthesizer.low_confidence_threshold
        return [e for e in self.all_elements if e.confidence < threshold]

    def find_element(self, element_id: str) -> Optional[FormElement]:
        for element in self.all_elements:
            if element.id == element_id:
                return element
        return None

    # ------------------------------------------------------------------
    # Navigation and selection
    # ------------------------------------------------------------------

    def navigate_to_page(self, page_number: int) -> bool:
        """Make a page active and clear the selection.

        Returns False, changing nothing, for a page the session does not hold.
        """
        if page_number not in self.elements_by_page:
            return False
        self.current_page = page_number
        self.selected_element = None
        return True

    def next_page(self) -> bool:
        later = [p for p in self.page_numbers if p > self.current_page]
        return self.navigate_to_page(later[0]) if later else False

    def previous_page(self) -> bool:
        earlier = [p for p in self.page_numbers if p < self.current_page]
        return self.navigate_to_page(earlier[-1]) if earlier else False

    def page_image(self, page_number: int) -> Optional[Image.Image]:
        """Image for a page, or None when there is no source or it failed."""
        if self.images is None:
            return None
        try:
            image = self.images.page_image(page_number)
        except PageImageError as exc:
            self.image_errors[page_number] = str(exc)
            logger.warning("Cannot show page %d: %s", page_number, exc)
            return None
        self.image_errors.pop(page_number, None)
        return image

    def page_size(self, page_number: int) -> tuple[int, int]:
        """Natural pixel size of a page, the reference size when unknown."""
        image = self.page_image(page_number)
        return image.size if image is not None else settings.reference_page_size

    def viewport(self, canvas_size: Optional[tuple[int, int]] = None) -> Viewport:
        """Display geometry of the active page fitted to the canvas."""
        return Viewport.fit(self.page_size(self.current_page), canvas_size or self.canvas_size)

    def click(
        self,
        x: float,
        y: float,
        viewport: Optional[Viewport] = None,
    ) -> Optional[FormElement]:
        """Select the element under a display point on the active page.

        A click on empty space clears the selection.
        """
        viewport = viewport or self.viewport()
        self.selected_element = viewport.hit_test(x, y, self.elements_for_page(self.current_page))
        return self.selected_element

    # ------------------------------------------------------------------
    # Edits and synthesis
    # ------------------------------------------------------------------

    def change_element_type(self, element_id: str, new_type: Union[ElementType, str]) -> FormElement:
        """Reclassify an element and regenerate every field.

        Raises:
            KeyError: If no element has the id.
        """
        element = self._require(element_id)
        element.type = ElementType(new_type)
        self.regenerate()
        return element

    def change_element_value(self, element_id: str, value: Optional[str]) -> FormElement:
        """Edit an element's value and regenerate every field."""
        element = self._require(element_id)
        element.value = value
        self.regenerate()
        return element

    def _require(self, element_id: str) -> FormElement:
        element = self.find_element(element_id)
        if element is None:
            raise KeyError(f"No element {element_id!r}")
        return element

    def regenerate(self) -> SynthesisResult:
        """Regenerate fields and sections from the current elements."""
        if self.images is not None:
            for page in self.page_numbers:
                image = self.page_image(page)
                if image is not None:
                    self.synthesizer.page_sizes[page] = image.size

        result = self.synthesizer.build(self.all_elements)
        self.fields = result.fields
        self.sections = result.sections
        return result

    def fields_for_page(self, page_number: int) -> list[GeneratedField]:
        return [f for f in self.fields if f.page_number == page_number]

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw(self, canvas_size: Optional[tuple[int, int]] = None) -> Optional[Image.Image]:
        """Render the active page with overlays.

        A draw that is overtaken by a newer request is discarded. Returns
        None when superseded or when the page image cannot be loaded; other
        pages stay usable either way.
        """
        ticket = self.scheduler.request()
        canvas_size = canvas_size or self.canvas_size
        image = self.page_image(self.current_page)
        if image is None:
            return None

        frame = self.renderer.render_canvas(
            image,
            self.elements_for_page(self.current_page),
            canvas_size,
            viewport=Viewport.fit(image.size, canvas_size),
            selected_id=self.selected_element.id if self.selected_element else None,
        )

        def publish() -> Image.Image:
            self.last_frame = frame
            return frame

        return self.scheduler.commit(ticket, publish)
