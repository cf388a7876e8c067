"""Block Graph Resolver - Index provider blocks and resolve their text.

Provider graphs are not guaranteed to be self-consistent: relationship ids
that point at missing blocks are treated as absent references.
"""

import logging
from typing import Iterable, Iterator, Optional

from formint.models import Block, BlockType, RelationshipType

logger = logging.getLogger(__name__)

TEXT_BEARING_TYPES = (BlockType.WORD, BlockType.LINE)


class BlockGraph:
    """Id-indexed view over one page's blocks.

    Keeps the provider's block order for iteration so that every pass over
    the graph is deterministic for identical input.
    """

    def __init__(self, blocks: Iterable[Block]):
        """Build the index.

        Args:
            blocks: Provider blocks in provider order. A repeated id keeps
                its first position but resolves to the last block seen.
        """
        self._blocks: list[Block] = list(blocks)
        self._index: dict[str, Block] = {}
        for block in self._blocks:
            self._index[block.id] = block
        self._kv_child_ids: Optional[frozenset[str]] = None

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __contains__(self, block_id: str) -> bool:
        return block_id in self._index

    def get(self, block_id: str) -> Optional[Block]:
        """Look up a block by id, or None when the id is dangling."""
        return self._index.get(block_id)

    def blocks_of_type(self, block_type: BlockType) -> list[Block]:
        """All blocks of a type, in provider order."""
        return [block for block in self._blocks if block.is_type(block_type)]

    def related(self, block: Block, rel_type: RelationshipType) -> list[Block]:
        """Blocks referenced by the first relationship of a type.

        Dangling ids are skipped.
        """
        relationship = block.first_relationship(rel_type)
        if relationship is None:
            return []
        resolved = []
        for block_id in relationship.ids:
            target = self._index.get(block_id)
            if target is None:
                logger.debug("Skipping dangling %s reference %s from %s", rel_type.value, block_id, block.id)
                continue
            resolved.append(target)
        return resolved

    def resolve_text(self, block: Block) -> str:
        """Resolve the display text of a block.

        Returns the block's own text when present, otherwise the texts of
        the WORD/LINE blocks under its first CHILD relationship joined by a
        single space and trimmed. Returns an empty string when nothing
        resolves.
        """
        if block.text:
            return block.text

        texts = [
            child.text or ""
            for child in self.related(block, RelationshipType.CHILD)
            if any(child.is_type(t) for t in TEXT_BEARING_TYPES)
        ]
        return " ".join(texts).strip()

    def kv_child_ids(self) -> frozenset[str]:
        """Ids referenced as CHILD of any KEY_VALUE_SET block."""
        if self._kv_child_ids is None:
            ids: set[str] = set()
            for block in self.blocks_of_type(BlockType.KEY_VALUE_SET):
                ids.update(block.related_ids(RelationshipType.CHILD))
            self._kv_child_ids = frozenset(ids)
        return self._kv_child_ids
