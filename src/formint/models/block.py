"""Provider block-graph models.

Mirrors the Amazon Textract ``Block`` schema. Field aliases are the exact,
case-sensitive provider names; unknown fields are ignored.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .base import BoundingBox


class BlockType(str, Enum):
    """Provider block types consumed by the pipeline."""

    PAGE = "PAGE"
    LINE = "LINE"
    WORD = "WORD"
    KEY_VALUE_SET = "KEY_VALUE_SET"
    SELECTION_ELEMENT = "SELECTION_ELEMENT"
    TABLE = "TABLE"
    CELL = "CELL"


class RelationshipType(str, Enum):
    """Edge types between blocks."""

    CHILD = "CHILD"
    VALUE = "VALUE"


class EntityType(str, Enum):
    """Role of a KEY_VALUE_SET block."""

    KEY = "KEY"
    VALUE = "VALUE"


class SelectionStatus(str, Enum):
    """State of a selection element."""

    SELECTED = "SELECTED"
    NOT_SELECTED = "NOT_SELECTED"


class ProviderBoundingBox(BaseModel):
    """Normalized box as reported by the provider."""

    left: float = Field(default=0.0, alias="Left")
    top: float = Field(default=0.0, alias="Top")
    width: float = Field(default=0.0, alias="Width")
    height: float = Field(default=0.0, alias="Height")

    class Config:
        populate_by_name = True
        frozen = True


class Geometry(BaseModel):
    """Block geometry container."""

    bounding_box: Optional[ProviderBoundingBox] = Field(default=None, alias="BoundingBox")

    class Config:
        populate_by_name = True
        frozen = True


class Relationship(BaseModel):
    """Typed edge to other blocks."""

    type: str = Field(..., alias="Type")
    ids: list[str] = Field(default_factory=list, alias="Ids")

    class Config:
        populate_by_name = True
        frozen = True


class Block(BaseModel):
    """One node of the provider's document-analysis graph.

    ``block_type`` is kept as a plain string so that block types the
    pipeline does not consume (PAGE, MERGED_CELL, ...) still parse.
    """

    id: str = Field(..., alias="Id")
    block_type: str = Field(..., alias="BlockType")
    text: Optional[str] = Field(default=None, alias="Text")
    confidence: Optional[float] = Field(default=None, ge=0.0, le=100.0, alias="Confidence")
    geometry: Optional[Geometry] = Field(default=None, alias="Geometry")
    entity_types: list[str] = Field(default_factory=list, alias="EntityTypes")
    relationships: list[Relationship] = Field(default_factory=list, alias="Relationships")
    selection_status: Optional[str] = Field(default=None, alias="SelectionStatus")

    # Cell-only, 1-based
    row_index: Optional[int] = Field(default=None, alias="RowIndex")
    column_index: Optional[int] = Field(default=None, alias="ColumnIndex")
    row_span: Optional[int] = Field(default=None, alias="RowSpan")
    column_span: Optional[int] = Field(default=None, alias="ColumnSpan")

    # Multi-page responses only, 1-based
    page: Optional[int] = Field(default=None, alias="Page")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def bounding_box(self) -> BoundingBox:
        """Normalized bounding box, or a zero box when geometry is missing."""
        if self.geometry is None or self.geometry.bounding_box is None:
            return BoundingBox()
        box = self.geometry.bounding_box
        return BoundingBox(left=box.left, top=box.top, width=box.width, height=box.height)

    def is_type(self, block_type: BlockType) -> bool:
        """Check the block type."""
        return self.block_type == block_type.value

    def has_entity(self, entity_type: EntityType) -> bool:
        """Check whether the block carries an entity type."""
        return entity_type.value in self.entity_types

    def first_relationship(self, rel_type: RelationshipType) -> Optional[Relationship]:
        """Get the first relationship of a type, if any."""
        for relationship in self.relationships:
            if relationship.type == rel_type.value:
                return relationship
        return None

    def related_ids(self, rel_type: RelationshipType) -> list[str]:
        """Get ids from every relationship of a type."""
        ids: list[str] = []
        for relationship in self.relationships:
            if relationship.type == rel_type.value:
                ids.extend(relationship.ids)
        return ids


class BlockPage(BaseModel):
    """Page attribute of a raw block, read before the block itself is parsed."""

    page: Optional[int] = Field(default=None, ge=1, alias="Page")


class ResponseMetadata(BaseModel):
    """``DocumentMetadata`` of an AnalyzeDocument response."""

    pages: Optional[int] = Field(default=None, ge=1, alias="Pages")

    class Config:
        populate_by_name = True


class AnalyzeDocumentResponse(BaseModel):
    """Envelope of one saved AnalyzeDocument response.

    Blocks stay raw here; a page's blocks are parsed only when that page is
    analyzed, so one malformed block fails its own page and no other.
    """

    blocks: Optional[list[dict[str, Any]]] = Field(..., alias="Blocks")
    document_metadata: Optional[ResponseMetadata] = Field(default=None, alias="DocumentMetadata")

    class Config:
        populate_by_name = True

    @property
    def declared_pages(self) -> int:
        """Page count from the metadata, 1 when absent."""
        if self.document_metadata is None:
            return 1
        return self.document_metadata.pages or 1
