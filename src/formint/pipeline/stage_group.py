"""Spatial Grouping Stage - Cluster elements into rows and pair labels.

Thresholds are configured in pixels while element boxes are normalized to
the page. ``threshold_scale`` reconciles the two:

- ``pixels``: normalized deltas are multiplied by the page's pixel size
  before comparison.
- ``raw``: deltas are compared against the pixel thresholds unscaled, so
  every element falls within tolerance of every other. Kept for
  reproducing output generated before unit scaling existed.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from formint.config import settings
from formint.exceptions import ConfigurationError
from formint.models import ElementType, FormElement

logger = logging.getLogger(__name__)

THRESHOLD_UNITS = ("pixels", "raw")

# Element types a label may pair with
PAIRABLE_TYPES = (ElementType.INPUT, ElementType.TEXT)


def threshold_scale(
    page_size: Optional[tuple[float, float]] = None,
    units: Optional[str] = None,
) -> tuple[float, float]:
    """Multipliers that turn normalized deltas into threshold units.

    Args:
        page_size: Page pixel size (width, height). Defaults to the
            configured reference page size.
        units: ``pixels`` or ``raw`` (default from settings).

    Returns:
        (x, y) multipliers.
    """
    units = units or settings.threshold_units
    if units == "raw":
        return (1.0, 1.0)
    if units == "pixels":
        width, height = page_size or settings.reference_page_size
        return (float(width), float(height))
    raise ConfigurationError(f"Unknown threshold units {units!r}; expected one of {THRESHOLD_UNITS}")


@dataclass
class FieldGroup:
    """Elements believed to share one visual row. Never persisted."""

    id: str
    elements: list[FormElement] = field(default_factory=list)

    @property
    def mean_top(self) -> float:
        """Running mean of member ``top`` values."""
        if not self.elements:
            return 0.0
        return sum(e.bounding_box.top for e in self.elements) / len(self.elements)

    def sort_by_left(self) -> None:
        self.elements.sort(key=lambda e: e.bounding_box.left)

    def __len__(self) -> int:
        return len(self.elements)


class RowClusterer(Protocol):
    """Strategy that partitions a page's elements into rows."""

    def cluster(
        self,
        elements: Sequence[FormElement],
        scale: tuple[float, float] = (1.0, 1.0),
    ) -> list[FieldGroup]:
        ...


class GreedyRowClusterer:
    """Streaming, first-match row clustering.

    Each element joins the first open group whose running mean ``top`` lies
    strictly within the tolerance, otherwise it opens a new group. Groups
    are never rebalanced. Members are sorted by ``left`` afterwards.
    """

    def __init__(self, tolerance: Optional[float] = None):
        """Initialize clusterer.

        Args:
            tolerance: Vertical tolerance in threshold units (default from
                settings).
        """
        self.tolerance = settings.row_tolerance if tolerance is None else tolerance

    @staticmethod
    def _delta(element: FormElement, group: FieldGroup, y_scale: float) -> float:
        return abs(element.bounding_box.top - group.mean_top) * y_scale

    def _choose(
        self, element: FormElement, groups: list[FieldGroup], y_scale: float
    ) -> Optional[FieldGroup]:
        for group in groups:
            if self._delta(element, group, y_scale) < self.tolerance:
                return group
        return None

    def cluster(
        self,
        elements: Sequence[FormElement],
        scale: tuple[float, float] = (1.0, 1.0),
    ) -> list[FieldGroup]:
        """Cluster elements, in order, into rows.

        Args:
            elements: One page's elements in emission order.
            scale: Multipliers from ``threshold_scale``.
        """
        groups: list[FieldGroup] = []
        for element in elements:
            group = self._choose(element, groups, scale[1])
            if group is None:
                group = FieldGroup(id=f"group_{len(groups) + 1}")
                groups.append(group)
            group.elements.append(element)

        for group in groups:
            group.sort_by_left()

        logger.debug("Clustered %d elements into %d rows", len(elements), len(groups))
        return groups


class CentroidRowClusterer(GreedyRowClusterer):
    """Best-match variant: joins the group whose mean ``top`` is nearest."""

    def _choose(
        self, element: FormElement, groups: list[FieldGroup], y_scale: float
    ) -> Optional[FieldGroup]:
        best = None
        best_delta = self.tolerance
        for group in groups:
            delta = self._delta(element, group, y_scale)
            if delta < best_delta:
                best, best_delta = group, delta
        return best


@dataclass
class RowPairing:
    """Outcome of label/input pairing within one row.

    ``labels`` keeps every label in row order with its matched input (or
    None). ``standalone`` holds every other element no label claimed, in
    row order, whatever its type.
    """

    labels: list[tuple[FormElement, Optional[FormElement]]] = field(default_factory=list)
    standalone: list[FormElement] = field(default_factory=list)

    @property
    def pairs(self) -> list[tuple[FormElement, FormElement]]:
        return [(label, match) for label, match in self.labels if match is not None]


def find_closest(
    reference: FormElement,
    candidates: Sequence[FormElement],
    max_distance: float,
    scale: tuple[float, float] = (1.0, 1.0),
) -> Optional[FormElement]:
    """Nearest candidate by top-left corner distance, if under the limit.

    Ties go to the earlier candidate.
    """
    closest = None
    closest_distance = None
    for candidate in candidates:
        distance = reference.bounding_box.corner_distance(candidate.bounding_box, scale)
        if closest_distance is None or distance < closest_distance:
            closest, closest_distance = candidate, distance

    if closest is None or closest_distance >= max_distance:
        return None
    return closest


def pair_labels(
    group: FieldGroup,
    max_distance: Optional[float] = None,
    scale: tuple[float, float] = (1.0, 1.0),
) -> RowPairing:
    """Pair each label in a row with its nearest input or text element.

    Every candidate stays eligible for every label, so two labels may pick
    the same input.

    Args:
        group: Row to pair within.
        max_distance: Pairing limit in threshold units (default from
            settings).
        scale: Multipliers from ``threshold_scale``.

    Returns:
        RowPairing for the row.
    """
    if max_distance is None:
        max_distance = settings.pairing_distance

    labels = [e for e in group.elements if e.is_label]
    candidates = [e for e in group.elements if e.type in PAIRABLE_TYPES]

    pairing = RowPairing()
    claimed: set[str] = set()
    for label in labels:
        match = find_closest(label, candidates, max_distance, scale)
        if match is not None:
            claimed.add(match.id)
        pairing.labels.append((label, match))

    pairing.standalone = [e for e in group.elements if not e.is_label and e.id not in claimed]
    return pairing
