"""Page-scoped form elements and reconstructed tables."""

from typing import Iterator, Optional

from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel

from .base import BoundingBox, ElementType


class FormElement(BaseModel):
    """
    Synthesized, typed unit of form structure on one page.

    Only ``type`` and ``value`` may change after creation; a reviewer edit
    to either must be followed by field regeneration.
    """

    id: str = Field(..., frozen=True, description="Process-unique element id")
    type: ElementType
    text: str = Field(default="", frozen=True)
    confidence: float = Field(..., ge=0.0, le=100.0, frozen=True)
    bounding_box: BoundingBox = Field(default_factory=BoundingBox, frozen=True)
    related_element_ids: set[str] = Field(default_factory=set)
    value: Optional[str] = None
    options: Optional[list[str]] = None
    page_number: int = Field(default=1, ge=1, frozen=True)
    table_id: Optional[str] = Field(None, description="Source table for table summaries")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        validate_assignment = True

    @field_serializer("related_element_ids")
    def _serialize_related(self, ids: set[str]) -> list[str]:
        return sorted(ids)

    @property
    def is_label(self) -> bool:
        return self.type == ElementType.LABEL


class TableCell(BaseModel):
    """Individual cell of a reconstructed table."""

    text: str = Field(default="", description="Resolved cell text")
    row_index: int = Field(..., ge=0, description="0-indexed row number")
    column_index: int = Field(..., ge=0, description="0-indexed column number")
    row_span: int = Field(default=1, ge=1, description="Number of rows this cell spans")
    column_span: int = Field(default=1, ge=1, description="Number of columns this cell spans")
    confidence: float = Field(default=95.0, ge=0.0, le=100.0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def is_merged(self) -> bool:
        """Check if cell spans multiple rows or columns."""
        return self.row_span > 1 or self.column_span > 1


class Table(BaseModel):
    """
    Dense grid reconstructed from a TABLE block.

    Positions covered only by a neighbouring cell's span stay ``None``;
    spans are recorded on the cell but never merged into the grid.
    """

    id: str
    rows: int = Field(..., ge=0)
    columns: int = Field(..., ge=0)
    cells: list[list[Optional[TableCell]]] = Field(default_factory=list)
    confidence: float = Field(default=95.0, ge=0.0, le=100.0)
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    page_number: int = Field(default=1, ge=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def iter_cells(self) -> Iterator[TableCell]:
        """Iterate populated cells in row-major order."""
        for row in self.cells:
            for cell in row:
                if cell is not None:
                    yield cell

    def to_markdown(self) -> str:
        """Convert table to markdown format."""
        if not self.rows or not self.columns:
            return ""

        lines = []
        for i, row in enumerate(self.cells):
            texts = [cell.text if cell is not None else "" for cell in row]
            lines.append("| " + " | ".join(texts) + " |")
            # Separator after first row (header)
            if i == 0:
                lines.append("| " + " | ".join(["---"] * self.columns) + " |")

        return "\n".join(lines)
