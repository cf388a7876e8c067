"""Tests for page image sources."""

from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from formint.exceptions import PageImageError
from formint.review.page_images import ImageFilePages, PDFPageImages, open_page_images


def _mock_pdf(width=30, height=20, pages=2):
    """Mock PyMuPDF document whose pages render to black pixmaps."""
    pixmap = MagicMock()
    pixmap.width = width
    pixmap.height = height
    pixmap.samples = bytes(width * height * 3)

    page = MagicMock()
    page.get_pixmap.return_value = pixmap

    pdf_doc = MagicMock()
    pdf_doc.__len__.return_value = pages
    pdf_doc.__getitem__.return_value = page
    return pdf_doc, page


class TestPDFPageImages:
    """Tests for PDF page rendering."""

    @patch("formint.review.page_images.fitz")
    def test_page_count(self, mock_fitz, tmp_path):
        """Page count comes from the PDF and closes it."""
        pdf_doc, _ = _mock_pdf(pages=3)
        mock_fitz.open.return_value = pdf_doc

        assert PDFPageImages(tmp_path / "form.pdf").page_count() == 3
        pdf_doc.close.assert_called_once()

    @patch("formint.review.page_images.fitz")
    def test_page_image_uses_scale(self, mock_fitz, tmp_path):
        """Pages should render at the preview scale without alpha."""
        pdf_doc, page = _mock_pdf()
        mock_fitz.open.return_value = pdf_doc

        image = PDFPageImages(tmp_path / "form.pdf", scale=1.5).page_image(1)

        assert image.size == (30, 20)
        assert image.mode == "RGB"
        mock_fitz.Matrix.assert_called_once_with(1.5, 1.5)
        page.get_pixmap.assert_called_once_with(matrix=mock_fitz.Matrix.return_value, alpha=False)
        pdf_doc.__getitem__.assert_called_once_with(0)

    @patch("formint.review.page_images.fitz")
    def test_page_image_cached(self, mock_fitz, tmp_path):
        """Rendered pages are cached per page."""
        pdf_doc, _ = _mock_pdf()
        mock_fitz.open.return_value = pdf_doc
        pages = PDFPageImages(tmp_path / "form.pdf")

        first = pages.page_image(1)
        second = pages.page_image(1)

        assert first is second
        assert mock_fitz.open.call_count == 1

    @patch("formint.review.page_images.fitz")
    def test_open_failure(self, mock_fitz, tmp_path):
        """Open failures surface as PageImageError."""
        mock_fitz.open.side_effect = RuntimeError("cannot open broken document")

        with pytest.raises(PageImageError):
            PDFPageImages(tmp_path / "broken.pdf").page_count()
        with pytest.raises(PageImageError):
            PDFPageImages(tmp_path / "broken.pdf").page_image(1)

    @patch("formint.review.page_images.fitz")
    def test_page_out_of_range(self, mock_fitz, tmp_path):
        """A page outside the PDF raises with its page number."""
        pdf_doc, _ = _mock_pdf()
        pdf_doc.__getitem__.side_effect = IndexError("page not in document")
        mock_fitz.open.return_value = pdf_doc

        with pytest.raises(PageImageError) as exc_info:
            PDFPageImages(tmp_path / "form.pdf").page_image(5)

        assert exc_info.value.page_index == 5
        pdf_doc.close.assert_called_once()

    @patch("formint.review.page_images.fitz")
    def test_render_page(self, mock_fitz, tmp_path):
        """Rendering a page writes a PNG and reports its size."""
        pdf_doc, _ = _mock_pdf()
        mock_fitz.open.return_value = pdf_doc
        output = tmp_path / "page_1.png"

        info = PDFPageImages(tmp_path / "form.pdf", scale=2.0).render_page(1, output)

        assert output.exists()
        assert info.size == (30, 20)
        assert info.scale == 2.0
        assert info.file_size_bytes == output.stat().st_size


class TestImageFilePages:
    """Tests for image-file page sources."""

    @pytest.fixture
    def png_path(self, tmp_path):
        path = tmp_path / "page.png"
        Image.new("RGBA", (40, 60), (255, 0, 0, 255)).save(path)
        return path

    def test_loads_as_rgb(self, png_path):
        """Image files load as RGB."""
        pages = ImageFilePages([png_path])
        image = pages.page_image(1)

        assert pages.page_count() == 1
        assert image.mode == "RGB"
        assert image.size == (40, 60)

    def test_missing_page(self, png_path):
        """Pages past the last file raise."""
        with pytest.raises(PageImageError):
            ImageFilePages([png_path]).page_image(2)

    def test_unreadable_file(self, tmp_path):
        """Unreadable files raise PageImageError."""
        bad = tmp_path / "bad.png"
        bad.write_text("not an image")

        with pytest.raises(PageImageError):
            ImageFilePages([bad]).page_image(1)

    def test_open_page_images_by_suffix(self, tmp_path, png_path):
        """PDFs render, anything else loads as an image file."""
        assert isinstance(open_page_images(tmp_path / "form.PDF"), PDFPageImages)
        assert isinstance(open_page_images(png_path), ImageFilePages)
