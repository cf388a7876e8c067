"""Static form vocabulary: label translations and PHI keywords.

Both tables ship as package data and are loaded once, then exposed
read-only.
"""

import json
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import FrozenSet, Mapping

DATA_PACKAGE = "formint.data"


def _load_json(name: str):
    with resources.files(DATA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=1)
def label_translations() -> Mapping[str, Mapping[str, str]]:
    """Return the phrase -> {language: text} table, keyed by lowercase English."""
    raw = _load_json("label_translations.json")
    return MappingProxyType({
        phrase.lower().strip(): MappingProxyType(dict(by_language))
        for phrase, by_language in raw.items()
    })


@lru_cache(maxsize=1)
def phi_keywords() -> FrozenSet[str]:
    """Return the keywords that mark a field as protected health information."""
    return frozenset(keyword.lower() for keyword in _load_json("phi_keywords.json"))


def translate_label(text: str, language: str, source_language: str = "en") -> str:
    """Translate a label for display.

    Text is returned unchanged when the display language is the source
    language or no translation exists. An all-caps source keeps an all-caps
    translation.

    Args:
        text: Label text as read from the form.
        language: Display language code.
        source_language: Language the form was read in.
    """
    if not text or language == source_language:
        return text

    translation = label_translations().get(text.lower().strip(), {}).get(language)
    if not translation:
        return text
    if text == text.upper():
        return translation.upper()
    return translation


def is_phi_text(*texts: str) -> bool:
    """Check whether any text contains a PHI keyword."""
    keywords = phi_keywords()
    return any(keyword in text.lower() for text in texts if text for keyword in keywords)
