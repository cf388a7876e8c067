"""Pipeline stages for form synthesis.

Pure stages (no I/O, deterministic for identical block order):
1. stage_resolve - Block graph index and text resolution
2. stage_kv - Key/value pair extraction
3. stage_table - Table grid reconstruction
4. stage_select - Selection mark extraction
5. stage_normalize - Merge passes into page FormElements
6. stage_group - Row clustering and label/input pairing
7. stage_fields - GeneratedField and Section synthesis

The runner drives the provider page by page and feeds stages 1-5.
"""

from .ids import IdAllocator
from .runner import DocumentRunner
from .stage_fields import FieldSynthesizer, SynthesisResult
from .stage_group import (
    CentroidRowClusterer,
    FieldGroup,
    GreedyRowClusterer,
    RowClusterer,
    RowPairing,
    pair_labels,
    threshold_scale,
)
from .stage_kv import KeyValueRecord, extract_key_values
from .stage_normalize import ElementNormalizer, PageExtraction, average_confidence
from .stage_resolve import BlockGraph
from .stage_select import SelectionMark, extract_selections
from .stage_table import extract_tables, reconstruct_table

__all__ = [
    # Graph
    "BlockGraph",
    "IdAllocator",
    # Extraction
    "KeyValueRecord",
    "extract_key_values",
    "extract_tables",
    "reconstruct_table",
    "SelectionMark",
    "extract_selections",
    # Normalization
    "ElementNormalizer",
    "PageExtraction",
    "average_confidence",
    # Grouping
    "FieldGroup",
    "RowClusterer",
    "GreedyRowClusterer",
    "CentroidRowClusterer",
    "RowPairing",
    "pair_labels",
    "threshold_scale",
    # Synthesis
    "FieldSynthesizer",
    "SynthesisResult",
    # Orchestration
    "DocumentRunner",
]
