"""Selection Element Stage - Read checkbox and radio marks."""

from dataclasses import dataclass
from typing import Optional

from formint.models import BlockType, BoundingBox, ElementType, SelectionStatus
from formint.pipeline.stage_resolve import BlockGraph

CHECKED_GLYPH = "☑"
UNCHECKED_GLYPH = "☐"


@dataclass
class SelectionMark:
    """State of one selection element.

    Checkbox and radio marks are not told apart here; both are reported as
    checkboxes and may be reclassified by a reviewer.
    """

    type: ElementType
    text: str
    value: str
    confidence: Optional[float]
    bounding_box: BoundingBox

    @property
    def checked(self) -> bool:
        return self.value == "checked"


def extract_selections(graph: BlockGraph) -> list[SelectionMark]:
    """Extract every SELECTION_ELEMENT block in provider order."""
    marks = []
    for block in graph.blocks_of_type(BlockType.SELECTION_ELEMENT):
        selected = block.selection_status == SelectionStatus.SELECTED.value
        marks.append(
            SelectionMark(
                type=ElementType.CHECKBOX,
                text=CHECKED_GLYPH if selected else UNCHECKED_GLYPH,
                value="checked" if selected else "unchecked",
                confidence=block.confidence,
                bounding_box=block.bounding_box,
            )
        )
    return marks
