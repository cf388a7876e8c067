"""Document-analysis provider strategies."""

import logging

from formint.config import settings
from formint.exceptions import ConfigurationError

from .base import CAPABILITIES, OCRProvider, ProviderCapabilities, Source
from .textract_json import TextractJSONProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "amazon-textract"

# Providers with a working strategy
STRATEGIES = {
    "amazon-textract": TextractJSONProvider,
}


def get_provider(name: str = None) -> OCRProvider:
    """Create the strategy for a provider id.

    Known providers without a strategy fall back to Amazon Textract.

    Raises:
        ConfigurationError: If the provider id is unknown.
    """
    name = name or settings.provider
    if name not in CAPABILITIES:
        raise ConfigurationError(f"Unknown provider {name!r}; expected one of {sorted(CAPABILITIES)}")
    if name not in STRATEGIES:
        logger.warning("Provider %s not available, falling back to %s", name, DEFAULT_PROVIDER)
        name = DEFAULT_PROVIDER
    return STRATEGIES[name]()


__all__ = [
    "CAPABILITIES",
    "DEFAULT_PROVIDER",
    "OCRProvider",
    "ProviderCapabilities",
    "Source",
    "STRATEGIES",
    "TextractJSONProvider",
    "get_provider",
]
