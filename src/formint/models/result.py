"""Processing results for pages and whole documents."""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .element import FormElement, Table


class PageOutcome(BaseModel):
    """Typed result of processing one page.

    A failed page carries the failure reason and no elements; it is never
    replaced by another page's content.
    """

    page_number: int = Field(..., ge=1)
    elements: list[FormElement] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    confidence: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def ok(self) -> bool:
        return self.error is None


class ProcessingMetadata(BaseModel):
    """Document-level summary of a processing run."""

    page_count: int = Field(default=0, ge=0)
    processing_time: float = Field(default=0.0, ge=0.0, description="Elapsed milliseconds")
    provider: str = ""
    document_type: str = "form"
    confidence: int = Field(default=0, ge=0, le=100)
    warnings: list[str] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProcessingResult(BaseModel):
    """Elements and tables for every page of a document."""

    elements: list[FormElement] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    metadata: ProcessingMetadata = Field(default_factory=ProcessingMetadata)
    pages: dict[int, PageOutcome] = Field(default_factory=dict)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def failed_pages(self) -> list[int]:
        """Page numbers whose processing failed."""
        return [number for number, outcome in self.pages.items() if not outcome.ok]

    def elements_by_page(self) -> dict[int, list[FormElement]]:
        """Partition elements by page, with an explicit entry for every page."""
        return {number: list(outcome.elements) for number, outcome in sorted(self.pages.items())}
