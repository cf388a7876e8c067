"""Data models for formint.

Models fall in two groups:

- Provider input: ``Block`` and its geometry/relationship parts, parsed from
  the provider's JSON by exact field name.
- Synthesized output: ``FormElement``, ``Table``, ``GeneratedField``,
  ``Section`` and the processing results. These serialize with camelCase
  aliases for the template-builder UI.
"""

from .base import (
    BoundingBox,
    ElementType,
    FieldType,
    ValidationRuleType,
    round_half_up,
)
from .block import (
    AnalyzeDocumentResponse,
    Block,
    BlockPage,
    BlockType,
    EntityType,
    Geometry,
    ProviderBoundingBox,
    Relationship,
    RelationshipType,
    ResponseMetadata,
    SelectionStatus,
)
from .element import (
    FormElement,
    Table,
    TableCell,
)
from .field import (
    FieldOption,
    GeneratedField,
    Section,
    ValidationRule,
)
from .page import PageImageInfo
from .result import (
    PageOutcome,
    ProcessingMetadata,
    ProcessingResult,
)

__all__ = [
    # Base types
    "BoundingBox",
    "ElementType",
    "FieldType",
    "ValidationRuleType",
    "round_half_up",
    # Provider blocks
    "AnalyzeDocumentResponse",
    "Block",
    "BlockPage",
    "BlockType",
    "EntityType",
    "Geometry",
    "ProviderBoundingBox",
    "Relationship",
    "RelationshipType",
    "ResponseMetadata",
    "SelectionStatus",
    # Elements
    "FormElement",
    "Table",
    "TableCell",
    # Fields
    "FieldOption",
    "GeneratedField",
    "Section",
    "ValidationRule",
    # Pages
    "PageImageInfo",
    # Results
    "PageOutcome",
    "ProcessingMetadata",
    "ProcessingResult",
]
