"""Element Normalization Stage - Merge extraction passes into page elements.

Emission order on a page:
1. Key-value pairs: a label, then its input when the value is non-empty
2. Selection marks
3. One ``table`` summary element per reconstructed table
4. LINE blocks not already captured under a KEY_VALUE_SET, as ``text``
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from formint.config import settings
from formint.models import (
    Block,
    BlockType,
    ElementType,
    FormElement,
    Table,
    round_half_up,
)
from formint.pipeline.ids import IdAllocator
from formint.pipeline.stage_kv import extract_key_values
from formint.pipeline.stage_resolve import BlockGraph
from formint.pipeline.stage_select import extract_selections
from formint.pipeline.stage_table import extract_tables

logger = logging.getLogger(__name__)


@dataclass
class PageExtraction:
    """Normalized output for one page."""

    page_number: int
    elements: list[FormElement] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    confidence: int = 0


def average_confidence(elements: list[FormElement]) -> int:
    """Mean element confidence rounded half-up, 0 for no elements."""
    if not elements:
        return 0
    return round_half_up(sum(e.confidence for e in elements) / len(elements))


class ElementNormalizer:
    """Builds a page's ``FormElement`` list from its block graph.

    Ids are drawn from the shared allocator, so normalizing several pages
    with one normalizer keeps every element id unique.
    """

    def __init__(
        self,
        ids: Optional[IdAllocator] = None,
        default_confidence: Optional[float] = None,
    ):
        """Initialize normalizer.

        Args:
            ids: Id allocator shared across pages (a fresh one by default).
            default_confidence: Confidence for blocks that report none
                (default from settings).
        """
        self.ids = ids or IdAllocator()
        self.default_confidence = (
            settings.default_confidence if default_confidence is None else default_confidence
        )

    def _confidence(self, value: Optional[float]) -> float:
        return self.default_confidence if value is None else value

    def normalize(self, blocks: Iterable[Block], page_number: int = 1) -> PageExtraction:
        """Normalize one page.

        Args:
            blocks: The page's provider blocks.
            page_number: 1-indexed page number stamped on every element.

        Returns:
            PageExtraction with elements, tables and average confidence.
        """
        graph = blocks if isinstance(blocks, BlockGraph) else BlockGraph(blocks)
        elements: list[FormElement] = []

        for record in extract_key_values(graph).values():
            confidence = self._confidence(record.confidence)
            label = FormElement(
                id=self.ids.next("element"),
                type=ElementType.LABEL,
                text=record.key,
                confidence=confidence,
                bounding_box=record.key_bounding_box,
                page_number=page_number,
            )
            elements.append(label)

            if record.value:
                value_element = FormElement(
                    id=self.ids.next("element"),
                    type=ElementType.INPUT,
                    text=record.value,
                    confidence=confidence,
                    bounding_box=record.value_bounding_box or record.key_bounding_box,
                    related_element_ids={label.id},
                    page_number=page_number,
                )
                label.related_element_ids.add(value_element.id)
                elements.append(value_element)

        for mark in extract_selections(graph):
            elements.append(
                FormElement(
                    id=self.ids.next("element"),
                    type=mark.type,
                    text=mark.text,
                    value=mark.value,
                    confidence=self._confidence(mark.confidence),
                    bounding_box=mark.bounding_box,
                    page_number=page_number,
                )
            )

        tables = extract_tables(graph, self.ids, page_number, self.default_confidence)
        for table in tables:
            elements.append(
                FormElement(
                    id=self.ids.next("element"),
                    type=ElementType.TABLE,
                    text=f"Table {table.rows}x{table.columns}",
                    confidence=table.confidence,
                    bounding_box=table.bounding_box,
                    page_number=page_number,
                    table_id=table.id,
                )
            )

        captured = graph.kv_child_ids()
        for line in graph.blocks_of_type(BlockType.LINE):
            if line.id in captured:
                continue
            elements.append(
                FormElement(
                    id=self.ids.next("element"),
                    type=ElementType.TEXT,
                    text=graph.resolve_text(line),
                    confidence=self._confidence(line.confidence),
                    bounding_box=line.bounding_box,
                    page_number=page_number,
                )
            )

        logger.debug(
            "Page %d: %d elements, %d tables from %d blocks",
            page_number,
            len(elements),
            len(tables),
            len(graph),
        )
        return PageExtraction(
            page_number=page_number,
            elements=elements,
            tables=tables,
            confidence=average_confidence(elements),
        )
