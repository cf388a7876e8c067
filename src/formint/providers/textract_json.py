"""Amazon Textract strategy backed by saved AnalyzeDocument responses.

Accepts either a single response (``{"Blocks": [...]}``), whose blocks are
split into pages by their ``Page`` attribute, or a list of per-page
responses.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from formint.exceptions import ProviderError
from formint.models import AnalyzeDocumentResponse, Block, BlockPage
from formint.providers.base import CAPABILITIES, ProviderCapabilities, Source

logger = logging.getLogger(__name__)


def _split_pages(document: Any) -> list[list[dict]]:
    """Raw block dicts grouped by 1-indexed page, in page order.

    Raises:
        ProviderError: If the document is not a Textract response.
    """
    try:
        if isinstance(document, list):
            return [list(AnalyzeDocumentResponse.model_validate(r).blocks or []) for r in document]
        response = AnalyzeDocumentResponse.model_validate(document)
        raw_blocks = response.blocks or []
        block_pages = [BlockPage.model_validate(raw).page or 1 for raw in raw_blocks]
    except ValidationError as exc:
        raise ProviderError(f"Not a Textract response: {exc}") from exc

    page_total = max([response.declared_pages] + block_pages)
    pages: list[list[dict]] = [[] for _ in range(page_total)]
    for raw, page in zip(raw_blocks, block_pages):
        pages[page - 1].append(raw)
    return pages


class TextractJSONProvider:
    """Reads Textract block graphs from JSON files on disk.

    Parsed documents are cached per path for the lifetime of the provider.
    """

    name = "amazon-textract"

    def __init__(self):
        self._cache: dict[Path, list[list[dict]]] = {}

    @property
    def capabilities(self) -> ProviderCapabilities:
        return CAPABILITIES[self.name]

    def _pages(self, source: Source) -> list[list[dict]]:
        path = Path(source)
        if path not in self._cache:
            if not path.exists():
                raise ProviderError(f"Block graph not found: {path}")
            try:
                with open(path, encoding="utf-8") as f:
                    document = json.load(f)
            except json.JSONDecodeError as exc:
                raise ProviderError(f"Invalid JSON in {path}: {exc}") from exc
            self._cache[path] = _split_pages(document)
            logger.debug("Loaded %s with %d pages", path, len(self._cache[path]))
        return self._cache[path]

    def page_count(self, source: Source) -> int:
        return len(self._pages(source))

    def analyze_page(self, source: Source, page_number: int) -> list[Block]:
        """Parse the blocks of one 1-indexed page.

        Raises:
            ProviderError: If the page does not exist or a block is malformed.
        """
        pages = self._pages(source)
        if not 1 <= page_number <= len(pages):
            raise ProviderError(f"Page {page_number} out of range (1-{len(pages)})", page_index=page_number)
        try:
            return [Block.model_validate(raw) for raw in pages[page_number - 1]]
        except ValidationError as exc:
            raise ProviderError(f"Malformed block on page {page_number}: {exc}", page_index=page_number) from exc
