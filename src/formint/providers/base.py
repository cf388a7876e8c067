"""Provider interface and capability table.

Every document-analysis provider is one strategy behind ``OCRProvider``.
What a provider can do is data in ``CAPABILITIES``, not a class hierarchy.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from formint.models import Block

Source = Union[str, Path]


@dataclass(frozen=True)
class ProviderCapabilities:
    """What one provider supports."""

    id: str
    name: str
    description: str
    supports_tables: bool = False
    supports_handwriting: bool = False
    supports_form_extraction: bool = False
    supports_multiple_languages: bool = False
    max_pages: int = 1
    supported_languages: tuple[str, ...] = ("en",)
    file_types: tuple[str, ...] = (".pdf", ".png", ".jpg", ".jpeg")
    max_file_size: int = 5 * 1024 * 1024
    features: tuple[str, ...] = field(default_factory=tuple)

    def accepts(self, path: Source) -> bool:
        """Check whether a file's extension is supported."""
        return Path(path).suffix.lower() in self.file_types


CAPABILITIES: dict[str, ProviderCapabilities] = {
    "amazon-textract": ProviderCapabilities(
        id="amazon-textract",
        name="Amazon Textract",
        description="AWS OCR service optimized for document processing",
        supports_tables=True,
        supports_handwriting=True,
        supports_form_extraction=True,
        max_pages=100,
        file_types=(".pdf", ".png", ".jpg", ".jpeg", ".tiff", ".bmp", ".json"),
        features=("Form extraction", "Table extraction", "Key-value pair detection", "Signature detection"),
    ),
    "google-vision": ProviderCapabilities(
        id="google-vision",
        name="Google Cloud Vision",
        description="Google document text detection",
        supports_handwriting=True,
        supports_multiple_languages=True,
        max_pages=5,
        features=("Document text detection", "Handwriting detection"),
    ),
    "microsoft-form-recognizer": ProviderCapabilities(
        id="microsoft-form-recognizer",
        name="Microsoft Form Recognizer",
        description="Azure AI service for intelligent document processing",
        supports_tables=True,
        supports_form_extraction=True,
        supports_multiple_languages=True,
        max_pages=2000,
        features=(
            "Pre-built form models",
            "Custom model training",
            "Receipt and invoice processing",
            "ID document extraction",
        ),
    ),
    "tesseract": ProviderCapabilities(
        id="tesseract",
        name="Tesseract (Local)",
        description="Open-source OCR engine for local processing",
        supports_multiple_languages=True,
        max_pages=1,
        file_types=(".png", ".jpg", ".jpeg", ".tiff", ".bmp"),
        features=("Offline processing", "No API costs", "Basic text extraction", "Multi-language support"),
    ),
}


@runtime_checkable
class OCRProvider(Protocol):
    """Strategy that turns one page of a source document into blocks."""

    name: str

    @property
    def capabilities(self) -> ProviderCapabilities:
        ...

    def page_count(self, source: Source) -> int:
        """Number of pages the provider sees in the source."""
        ...

    def analyze_page(self, source: Source, page_number: int) -> list[Block]:
        """Blocks for one 1-indexed page. Raises ProviderError on failure."""
        ...
