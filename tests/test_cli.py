"""Tests for the formint CLI."""

import json
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image
from rich.console import Console
from typer.testing import CliRunner

from formint.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep rich tables from wrapping cell text in captured output."""
    monkeypatch.setattr("formint.cli.console", Console(width=300))


@pytest.fixture
def page_png(tmp_path):
    """Blank letter-size page at the reference resolution."""
    path = tmp_path / "page.png"
    Image.new("RGB", (918, 1188), "white").save(path)
    return path


class TestExtract:
    """Tests for the extract command."""

    def test_writes_result_json(self, patient_form_path, output_dir):
        """The result JSON should use camelCase keys and keep every element."""
        output = output_dir / "result.json"

        result = runner.invoke(app, ["extract", str(patient_form_path), "-o", str(output)])

        assert result.exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert len(payload["elements"]) == 11
        assert payload["metadata"]["pageCount"] == 1
        assert payload["metadata"]["provider"] == "Amazon Textract"
        assert payload["elements"][0]["boundingBox"]["top"] == 0.2
        assert payload["tables"][0]["id"] == "table-0"

    def test_selected_pages(self, two_page_path, output_dir):
        """Only the requested pages should appear in the result."""
        output = output_dir / "page2.json"

        result = runner.invoke(app, ["extract", str(two_page_path), "--pages", "2", "-o", str(output)])

        assert result.exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert list(payload["pages"]) == ["2"]

    def test_missing_source(self, tmp_path):
        """A missing block graph should exit with an error."""
        result = runner.invoke(app, ["extract", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_unknown_provider(self, patient_form_path):
        """An unknown provider id should exit with an error."""
        result = runner.invoke(app, ["extract", str(patient_form_path), "--provider", "abbyy"])

        assert result.exit_code == 1

    def test_bad_pages(self, patient_form_path):
        """Non-numeric page lists are a usage error."""
        result = runner.invoke(app, ["extract", str(patient_form_path), "--pages", "one"])

        assert result.exit_code != 0

    def test_page_zero_rejected(self, patient_form_path):
        """Page numbers are 1-indexed, so 0 is a usage error."""
        result = runner.invoke(app, ["extract", str(patient_form_path), "--pages", "0,1"])

        assert result.exit_code != 0
        assert isinstance(result.exception, SystemExit)

    def test_not_a_response(self, tmp_path):
        """A JSON file that is not an AnalyzeDocument response exits cleanly."""
        path = tmp_path / "numbers.json"
        path.write_text("[1, 2]", encoding="utf-8")

        result = runner.invoke(app, ["extract", str(path)])

        assert result.exit_code == 1
        assert "Not a Textract response" in result.stdout

    def test_tables_markdown(self, patient_form_path, output_dir):
        """Reconstructed tables print with their size and as markdown."""
        result = runner.invoke(
            app, ["extract", str(patient_form_path), "--tables", "-o", str(output_dir / "result.json")]
        )

        assert result.exit_code == 0
        assert "table-0 (page 1, 2x2, 0 merged cells)" in result.stdout
        assert "| Medication |  |" in result.stdout
        assert "|  | 10mg |" in result.stdout


class TestFields:
    """Tests for the fields command."""

    def test_table_output(self, patient_form_path):
        """Fields print as a table followed by their sections."""
        result = runner.invoke(app, ["fields", str(patient_form_path)])

        assert result.exit_code == 0
        assert "field_1" in result.stdout
        assert "Section 1" in result.stdout

    def test_verify_column(self, patient_form_path):
        """Low-confidence pairs are flagged for verification."""
        result = runner.invoke(app, ["fields", str(patient_form_path)])

        assert result.exit_code == 0
        assert "Verify" in result.stdout
        assert "yes" in result.stdout
        assert "Low confidence (75%) - Please verify" in result.stdout

    def test_json_output(self, patient_form_path):
        """JSON output should carry fields and sections."""
        result = runner.invoke(app, ["fields", str(patient_form_path), "--json"])

        assert result.exit_code == 0
        assert '"sections"' in result.stdout
        assert '"sourceElementId"' in result.stdout

    def test_unknown_units(self, patient_form_path):
        """Unknown threshold units should exit with an error."""
        result = runner.invoke(app, ["fields", str(patient_form_path), "--units", "inches"])

        assert result.exit_code == 1


class TestOverlay:
    """Tests for the overlay command."""

    def test_natural_size(self, patient_form_path, page_png, output_dir):
        """Without a canvas the overlay keeps the page image size."""
        output = output_dir / "overlay.png"

        result = runner.invoke(app, ["overlay", str(patient_form_path), str(page_png), "-o", str(output)])

        assert result.exit_code == 0
        with Image.open(output) as rendered:
            assert rendered.size == (918, 1188)

    def test_canvas(self, patient_form_path, page_png, output_dir):
        """With a canvas the overlay takes the canvas size."""
        output = output_dir / "overlay.png"

        result = runner.invoke(
            app,
            ["overlay", str(patient_form_path), str(page_png), "-o", str(output), "--canvas", "400x300"],
        )

        assert result.exit_code == 0
        with Image.open(output) as rendered:
            assert rendered.size == (400, 300)

    def test_unprocessed_page(self, patient_form_path, page_png, output_dir):
        """Overlaying a page that was not processed should fail."""
        result = runner.invoke(
            app,
            ["overlay", str(patient_form_path), str(page_png), "-o", str(output_dir / "x.png"), "--page", "4"],
        )

        assert result.exit_code == 1


class TestHit:
    """Tests for the hit command."""

    def test_hit_label(self, patient_form_path):
        """The name label's top-left corner is (91.8, 237.6) on the reference page."""
        result = runner.invoke(app, ["hit", str(patient_form_path), "95", "240"])

        assert result.exit_code == 0
        assert "element-0" in result.stdout
        assert "92%" in result.stdout

    def test_hit_reports_page_geometry(self, patient_form_path):
        """The selection is reported in page pixels next to the page point."""
        result = runner.invoke(app, ["hit", str(patient_form_path), "95", "240"])

        assert result.exit_code == 0
        assert "page point: (0.1035, 0.2020)" in result.stdout
        assert "left=91.8 top=237.6 width=91.8 height=35.6" in result.stdout

    def test_miss(self, patient_form_path):
        """A point outside every box selects nothing."""
        result = runner.invoke(app, ["hit", str(patient_form_path), "5", "5"])

        assert result.exit_code == 0
        assert "No selection" in result.stdout


def _mock_pdf(pages=2):
    """Mock PyMuPDF document whose pages render to 30x20 black pixmaps."""
    pixmap = MagicMock()
    pixmap.width = 30
    pixmap.height = 20
    pixmap.samples = bytes(30 * 20 * 3)

    pdf_doc = MagicMock()
    pdf_doc.__len__.return_value = pages
    pdf_doc.__getitem__.return_value.get_pixmap.return_value = pixmap
    return pdf_doc


class TestRender:
    """Tests for the render command."""

    @patch("formint.review.page_images.fitz")
    def test_renders_every_page(self, mock_fitz, tmp_path, output_dir):
        """Every page of the PDF should be written as a PNG."""
        mock_fitz.open.return_value = _mock_pdf(pages=2)

        result = runner.invoke(app, ["render", str(tmp_path / "form.pdf"), "-o", str(output_dir)])

        assert result.exit_code == 0
        assert (output_dir / "page_1.png").exists()
        assert (output_dir / "page_2.png").exists()
        assert "30x20" in result.stdout

    @patch("formint.review.page_images.fitz")
    def test_selected_pages(self, mock_fitz, tmp_path, output_dir):
        """Only the requested pages render, at the requested scale."""
        mock_fitz.open.return_value = _mock_pdf(pages=3)

        result = runner.invoke(
            app, ["render", str(tmp_path / "form.pdf"), "-o", str(output_dir), "--pages", "2", "--scale", "2"]
        )

        assert result.exit_code == 0
        assert [p.name for p in output_dir.iterdir()] == ["page_2.png"]
        mock_fitz.Matrix.assert_called_once_with(2.0, 2.0)

    @patch("formint.review.page_images.fitz")
    def test_open_failure(self, mock_fitz, tmp_path, output_dir):
        """An unreadable PDF exits with an error instead of a traceback."""
        mock_fitz.open.side_effect = RuntimeError("cannot open broken document")

        result = runner.invoke(app, ["render", str(tmp_path / "broken.pdf"), "-o", str(output_dir)])

        assert result.exit_code == 1
        assert "Error" in result.stdout


def test_providers_command():
    """Every provider should be listed with its id."""
    result = runner.invoke(app, ["providers"])

    assert result.exit_code == 0
    assert "amazon-textract" in result.stdout
    assert "tesseract" in result.stdout
