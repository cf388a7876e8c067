"""Page image sources for interactive review.

Turns document pages into PIL images. PDFs are rendered with PyMuPDF at the
preview scale (1.5x, i.e. 108 DPI); image files are loaded as-is.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

import fitz  # PyMuPDF
from PIL import Image

from formint.config import settings
from formint.exceptions import PageImageError
from formint.models import PageImageInfo

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PageImageSource(Protocol):
    """Supplies one raster image per 1-indexed page."""

    def page_count(self) -> int:
        ...

    def page_image(self, page_number: int) -> Image.Image:
        """Raises PageImageError if the page cannot be produced."""
        ...


class PDFPageImages:
    """Renders PDF pages with PyMuPDF.

    Rendered pages are cached, so page sizes stay stable for hit-testing.
    """

    def __init__(self, pdf_path: PathLike, scale: Optional[float] = None):
        """Initialize renderer.

        Args:
            pdf_path: Source PDF.
            scale: Zoom relative to 72 DPI (default from settings, 1.5).
        """
        self.pdf_path = Path(pdf_path)
        self.scale = scale or settings.preview_scale
        self._cache: dict[int, Image.Image] = {}

    def page_count(self) -> int:
        try:
            pdf_doc = fitz.open(str(self.pdf_path))
        except RuntimeError as exc:
            raise PageImageError(f"Cannot open {self.pdf_path}: {exc}") from exc
        count = len(pdf_doc)
        pdf_doc.close()
        return count

    def page_image(self, page_number: int) -> Image.Image:
        """Render one 1-indexed page."""
        if page_number in self._cache:
            return self._cache[page_number]

        try:
            pdf_doc = fitz.open(str(self.pdf_path))
            try:
                page = pdf_doc[page_number - 1]
                matrix = fitz.Matrix(self.scale, self.scale)
                pixmap = page.get_pixmap(matrix=matrix, alpha=False)
                image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
            finally:
                pdf_doc.close()
        except (RuntimeError, IndexError, ValueError) as exc:
            raise PageImageError(f"Cannot render page {page_number} of {self.pdf_path}: {exc}", page_number) from exc

        self._cache[page_number] = image
        return image

    def render_page(self, page_number: int, output_path: PathLike) -> PageImageInfo:
        """Render a single page to PNG.

        Args:
            page_number: 1-indexed page number
            output_path: Output PNG path

        Returns:
            PageImageInfo with image details
        """
        output_path = Path(output_path)
        image = self.page_image(page_number)
        image.save(output_path, format="PNG")
        return PageImageInfo(
            page_number=page_number,
            width_pixels=image.width,
            height_pixels=image.height,
            scale=self.scale,
            image_path=str(output_path),
            format="png",
            file_size_bytes=output_path.stat().st_size,
        )


class ImageFilePages:
    """Serves pages from image files, one file per page."""

    def __init__(self, paths: Sequence[PathLike]):
        self.paths = [Path(p) for p in paths]

    def page_count(self) -> int:
        return len(self.paths)

    def page_image(self, page_number: int) -> Image.Image:
        if not 1 <= page_number <= len(self.paths):
            raise PageImageError(f"No image for page {page_number}", page_number)
        path = self.paths[page_number - 1]
        try:
            with Image.open(path) as image:
                return image.convert("RGB")
        except OSError as exc:
            raise PageImageError(f"Cannot load {path}: {exc}", page_number) from exc


def open_page_images(path: PathLike, scale: Optional[float] = None) -> PageImageSource:
    """Pick a page image source for a PDF or an image file."""
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        return PDFPageImages(path, scale)
    return ImageFilePages([path])
