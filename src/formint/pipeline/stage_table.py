"""Table Reconstruction Stage - Rebuild grids from TABLE/CELL blocks.

Flow:
1. Follow each TABLE block's CHILD relationship to its CELL blocks
2. Convert 1-based provider indices to 0-based grid positions
3. Place each cell in a dense rows x columns grid

Spanned positions are not filled in; a cell that lands on an occupied
position replaces it.
"""

import logging
from typing import Optional

from formint.config import settings
from formint.models import Block, BlockType, RelationshipType, Table, TableCell
from formint.pipeline.ids import IdAllocator
from formint.pipeline.stage_resolve import BlockGraph

logger = logging.getLogger(__name__)


def _build_cell(graph: BlockGraph, cell_block: Block, default_confidence: float) -> TableCell:
    confidence = cell_block.confidence
    return TableCell(
        text=graph.resolve_text(cell_block),
        row_index=(cell_block.row_index or 1) - 1,
        column_index=(cell_block.column_index or 1) - 1,
        row_span=cell_block.row_span or 1,
        column_span=cell_block.column_span or 1,
        confidence=default_confidence if confidence is None else confidence,
    )


def reconstruct_table(
    graph: BlockGraph,
    table_block: Block,
    table_id: str,
    page_number: int = 1,
    default_confidence: Optional[float] = None,
) -> Table:
    """Reconstruct one table.

    Args:
        graph: Indexed page blocks.
        table_block: The TABLE block.
        table_id: Id to give the table.
        page_number: 1-indexed page the table sits on.
        default_confidence: Confidence for blocks that report none.

    Returns:
        Table whose dimensions are the largest observed 1-based indices.
        A table without cells is 0x0.
    """
    if default_confidence is None:
        default_confidence = settings.default_confidence

    cells = [
        _build_cell(graph, child, default_confidence)
        for child in graph.related(table_block, RelationshipType.CHILD)
        if child.is_type(BlockType.CELL)
    ]

    rows = max((c.row_index + 1 for c in cells), default=0)
    columns = max((c.column_index + 1 for c in cells), default=0)

    grid: list[list[Optional[TableCell]]] = [[None] * columns for _ in range(rows)]
    for cell in cells:
        grid[cell.row_index][cell.column_index] = cell

    confidence = table_block.confidence
    return Table(
        id=table_id,
        rows=rows,
        columns=columns,
        cells=grid,
        confidence=default_confidence if confidence is None else confidence,
        bounding_box=table_block.bounding_box,
        page_number=page_number,
    )


def extract_tables(
    graph: BlockGraph,
    ids: IdAllocator,
    page_number: int = 1,
    default_confidence: Optional[float] = None,
) -> list[Table]:
    """Reconstruct every TABLE block on a page, in provider order."""
    tables = [
        reconstruct_table(graph, block, ids.next("table"), page_number, default_confidence)
        for block in graph.blocks_of_type(BlockType.TABLE)
    ]
    logger.debug("Reconstructed %d tables on page %d", len(tables), page_number)
    return tables
