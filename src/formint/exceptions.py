"""Exception hierarchy for formint.

Graph and geometry code never raises for inconsistent provider data; these
exceptions cover infrastructure failures only (provider calls, page images,
configuration).
"""

from typing import Optional


class FormintError(Exception):
    """Base exception for formint errors."""

    pass


class ConfigurationError(FormintError):
    """Raised when configuration is invalid."""

    pass


class ProviderError(FormintError):
    """Raised when a document-analysis provider fails for a page."""

    def __init__(self, message: str, page_index: Optional[int] = None) -> None:
        self.page_index = page_index
        super().__init__(message)


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds the page timeout."""

    pass


class PageImageError(FormintError):
    """Raised when a page image cannot be loaded or rendered."""

    def __init__(self, message: str, page_index: Optional[int] = None) -> None:
        self.page_index = page_index
        super().__init__(message)
