"""Key-Value Extraction Stage - Pair KEY blocks with their VALUE blocks."""

import logging
from dataclasses import dataclass
from typing import Optional

from formint.models import (
    Block,
    BlockType,
    BoundingBox,
    EntityType,
    RelationshipType,
)
from formint.pipeline.stage_resolve import BlockGraph

logger = logging.getLogger(__name__)


@dataclass
class KeyValueRecord:
    """One label/value pair read from the form."""

    key: str
    value: str
    key_bounding_box: BoundingBox
    value_bounding_box: Optional[BoundingBox]
    confidence: Optional[float]  # from the KEY block


def _value_block(graph: BlockGraph, key_block: Block) -> Optional[Block]:
    """First KEY_VALUE_SET block reachable through the VALUE relationship."""
    for candidate in graph.related(key_block, RelationshipType.VALUE):
        if candidate.is_type(BlockType.KEY_VALUE_SET):
            return candidate
    return None


def extract_key_values(graph: BlockGraph) -> dict[str, KeyValueRecord]:
    """Extract label/value pairs keyed by label text.

    A KEY without a VALUE block yields an empty value. Keys that resolve to
    empty text are skipped. When two keys share the same text the later
    record replaces the earlier one but keeps its position.

    Args:
        graph: Indexed page blocks.

    Returns:
        Records in provider order of first key occurrence.
    """
    records: dict[str, KeyValueRecord] = {}

    for block in graph.blocks_of_type(BlockType.KEY_VALUE_SET):
        if not block.has_entity(EntityType.KEY):
            continue

        key_text = graph.resolve_text(block)
        if not key_text:
            continue

        value_text = ""
        value_box = None
        value_block = _value_block(graph, block)
        if value_block is not None:
            value_text = graph.resolve_text(value_block)
            value_box = value_block.bounding_box

        if key_text in records:
            logger.debug("Duplicate key %r replaces earlier value", key_text)

        records[key_text] = KeyValueRecord(
            key=key_text,
            value=value_text,
            key_bounding_box=block.bounding_box,
            value_bounding_box=value_box,
            confidence=block.confidence,
        )

    return records
