"""Sequential id allocation shared across the pages of one run."""

from collections import defaultdict


class IdAllocator:
    """Hands out ``{prefix}-{n}`` ids with one counter per prefix.

    A single allocator is shared by every page of a processing run so that
    element ids never collide across pages.
    """

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)

    def next(self, prefix: str) -> str:
        """Allocate the next id for a prefix."""
        number = self._counters[prefix]
        self._counters[prefix] = number + 1
        return f"{prefix}-{number}"
