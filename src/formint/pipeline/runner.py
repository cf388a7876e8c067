"""Document Runner - Process a document page by page.

Pages are sent to the provider strictly one at a time. Each call runs in a
single worker thread under a fixed timeout; a failed or timed-out page
becomes a failed ``PageOutcome`` with no elements and the loop moves on.
Nothing is retried.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Iterable, Optional

from formint.config import settings
from formint.exceptions import ConfigurationError, ProviderTimeoutError
from formint.models import PageOutcome, ProcessingResult
from formint.pipeline.ids import IdAllocator
from formint.pipeline.stage_normalize import ElementNormalizer, average_confidence
from formint.providers import OCRProvider, Source, get_provider

logger = logging.getLogger(__name__)

PageCallback = Callable[[PageOutcome], None]


class DocumentRunner:
    """Runs the extraction pipeline over every page of a source."""

    def __init__(
        self,
        provider: Optional[OCRProvider] = None,
        timeout: Optional[float] = None,
        default_confidence: Optional[float] = None,
    ):
        """Initialize runner.

        Args:
            provider: Provider strategy (default from settings).
            timeout: Per-page provider timeout in seconds (default from settings).
            default_confidence: Confidence for blocks that report none.
        """
        self.provider = provider or get_provider()
        self.timeout = settings.page_timeout_seconds if timeout is None else timeout
        self.default_confidence = default_confidence

    def _fetch(self, source: Source, page_number: int):
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"formint-page-{page_number}")
        try:
            future = executor.submit(self.provider.analyze_page, source, page_number)
            try:
                return future.result(timeout=self.timeout)
            except FutureTimeoutError as exc:
                raise ProviderTimeoutError(
                    f"Provider timed out after {self.timeout:g}s", page_index=page_number
                ) from exc
        finally:
            # A hung provider call must not block the next page
            executor.shutdown(wait=False, cancel_futures=True)

    def process_page(self, source: Source, page_number: int, normalizer: ElementNormalizer) -> PageOutcome:
        """Fetch and normalize one page.

        Args:
            source: Document to read.
            page_number: 1-indexed page number.
            normalizer: Normalizer shared across the run's pages.

        Returns:
            PageOutcome, failed when the provider raised or timed out.
        """
        try:
            blocks = self._fetch(source, page_number)
        except Exception as exc:
            logger.warning("OCR error on page %d. Skipping. (%s)", page_number, exc)
            logger.debug("Provider failure detail", exc_info=True)
            return PageOutcome(page_number=page_number, error=str(exc) or type(exc).__name__)

        extraction = normalizer.normalize(blocks, page_number)
        return PageOutcome(
            page_number=page_number,
            elements=extraction.elements,
            tables=extraction.tables,
            confidence=extraction.confidence,
        )

    def run(
        self,
        source: Source,
        pages: Optional[Iterable[int]] = None,
        on_page: Optional[PageCallback] = None,
    ) -> ProcessingResult:
        """Process a document.

        Args:
            source: Document to read.
            pages: 1-indexed page numbers to process (all pages by default).
            on_page: Called with each page's outcome as soon as it finishes.

        Returns:
            ProcessingResult with an entry for every requested page.

        Raises:
            ConfigurationError: If a requested page number is below 1.
            ProviderError: If the provider cannot count the pages of the source.
        """
        started = time.perf_counter()
        if pages is not None:
            page_numbers = list(pages)
            invalid = [number for number in page_numbers if number < 1]
            if invalid:
                raise ConfigurationError(f"Page numbers are 1-indexed, got {invalid}")
        else:
            page_numbers = list(range(1, self.provider.page_count(source) + 1))
        normalizer = ElementNormalizer(IdAllocator(), self.default_confidence)

        result = ProcessingResult()
        for page_number in page_numbers:
            outcome = self.process_page(source, page_number, normalizer)
            result.pages[page_number] = outcome
            result.elements.extend(outcome.elements)
            result.tables.extend(outcome.tables)
            if not outcome.ok:
                result.metadata.warnings.append(f"OCR error on page {page_number}. Skipping.")
            if on_page is not None:
                on_page(outcome)

        elements = result.elements
        result.metadata.page_count = len(page_numbers)
        result.metadata.provider = self.provider.capabilities.name
        result.metadata.document_type = "form"
        result.metadata.confidence = average_confidence(elements)
        result.metadata.processing_time = (time.perf_counter() - started) * 1000.0

        logger.info(
            "Processed %d pages (%d failed): %d elements, %d tables",
            len(page_numbers),
            len(result.failed_pages),
            len(elements),
            len(result.tables),
        )
        return result
