"""Field Synthesis Stage - Turn page elements into reviewable form fields.

Flow:
1. Partition elements by page and cluster each page into rows
2. Pair labels with inputs inside multi-element rows
3. Build one GeneratedField per pair or standalone element
4. Split fields into sections on large vertical gaps

Synthesis is pure: the same elements always produce the same fields, so
edits are handled by regenerating everything.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from formint.config import settings
from formint.models import (
    ElementType,
    FieldOption,
    FieldType,
    FormElement,
    GeneratedField,
    Section,
    ValidationRule,
    ValidationRuleType,
    round_half_up,
)
from formint.pipeline.stage_group import (
    FieldGroup,
    GreedyRowClusterer,
    RowClusterer,
    pair_labels,
    threshold_scale,
)
from formint.vocabulary import is_phi_text, translate_label

logger = logging.getLogger(__name__)


# Ordered: first match wins
TYPE_KEYWORDS: list[tuple[tuple[str, ...], FieldType]] = [
    (("email",), FieldType.EMAIL),
    (("phone", "tel"), FieldType.PHONE),
    (("date", "dob"), FieldType.DATE),
    (("time",), FieldType.TIME),
    (("signature",), FieldType.SIGNATURE),
    (("file", "upload"), FieldType.FILE),
    (("notes", "comments", "description"), FieldType.TEXTAREA),
]

PASSTHROUGH_TYPES = {
    ElementType.CHECKBOX: FieldType.CHECKBOX,
    ElementType.RADIO: FieldType.RADIO,
    ElementType.SELECT: FieldType.SELECT,
}

SECTION_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("demographic", "personal"), "Demographics"),
    (("medical", "history"), "Medical History"),
    (("vital", "sign"), "Vital Signs"),
    (("medication", "drug"), "Medications"),
    (("allerg",), "Allergies"),
    (("contact", "emergency"), "Contact Information"),
    (("insurance", "billing"), "Insurance Information"),
]

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^[\+]?[(]?[0-9]{3}[)]?[-\s\.]?[0-9]{3}[-\s\.]?[0-9]{4,6}$"

MIN_LENGTH_RE = re.compile(r"min[imum]*\s*[:=]?\s*(\d+)")
MAX_LENGTH_RE = re.compile(r"max[imum]*\s*[:=]?\s*(\d+)")
RANGE_RE = re.compile(r"(\d+)\s*-\s*(\d+)")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def sanitize_name(text: str) -> str:
    """Lowercase snake_case form of a label."""
    return NON_ALNUM_RE.sub("_", text.lower()).strip("_")


def infer_required(text: str) -> bool:
    return "*" in text or "required" in text.lower()


def infer_field_type(element: FormElement) -> FieldType:
    """Field type from the element type, then from keywords in its text."""
    if element.type in PASSTHROUGH_TYPES:
        return PASSTHROUGH_TYPES[element.type]

    text = element.text.lower()
    for keywords, field_type in TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return field_type
    return FieldType.TEXT


def generate_placeholder(field_type: FieldType, label: str) -> str:
    placeholders = {
        FieldType.EMAIL: "example@email.com",
        FieldType.PHONE: "(555) 123-4567",
        FieldType.DATE: "MM/DD/YYYY",
        FieldType.TIME: "HH:MM",
        FieldType.NUMBER: "Enter number",
        FieldType.TEXTAREA: f"Enter {label.lower()} details...",
    }
    return placeholders.get(field_type, f"Enter {label.lower()}")


def generate_help_text(field_type: FieldType, rules: Sequence[ValidationRule]) -> str:
    """Type-specific hint for fields that need one, else an empty string."""
    if any(rule.type == ValidationRuleType.PATTERN for rule in rules):
        return "Please enter in the correct format"
    if field_type == FieldType.DATE:
        return "Select or enter a date"
    if field_type == FieldType.FILE:
        return "Click to upload a file"
    return ""


def low_confidence_notice(confidence: float) -> str:
    return f"Low confidence ({round_half_up(confidence)}%) - Please verify"


def build_validation_rules(text: str, field_type: FieldType, required: bool) -> list[ValidationRule]:
    """Validation rules implied by a label's text and the field type.

    Args:
        text: Label text as read from the form.
        field_type: Inferred field type.
        required: Whether the field is required.

    Returns:
        Rules in a stable order: required, length, range, then pattern.
    """
    rules: list[ValidationRule] = []
    lowered = text.lower()

    if required:
        rules.append(
            ValidationRule(type=ValidationRuleType.REQUIRED, value=True, message="This field is required")
        )

    min_match = MIN_LENGTH_RE.search(lowered)
    if min_match:
        rules.append(
            ValidationRule(
                type=ValidationRuleType.MIN_LENGTH,
                value=int(min_match.group(1)),
                message=f"Minimum length is {min_match.group(1)}",
            )
        )
    max_match = MAX_LENGTH_RE.search(lowered)
    if max_match:
        rules.append(
            ValidationRule(
                type=ValidationRuleType.MAX_LENGTH,
                value=int(max_match.group(1)),
                message=f"Maximum length is {max_match.group(1)}",
            )
        )

    range_match = RANGE_RE.search(lowered)
    if range_match:
        low, high = range_match.groups()
        rules.append(ValidationRule(type=ValidationRuleType.MIN, value=int(low), message=f"Minimum value is {low}"))
        rules.append(ValidationRule(type=ValidationRuleType.MAX, value=int(high), message=f"Maximum value is {high}"))

    if field_type == FieldType.EMAIL:
        rules.append(
            ValidationRule(
                type=ValidationRuleType.PATTERN,
                value=EMAIL_PATTERN,
                message="Please enter a valid email address",
            )
        )
    elif field_type == FieldType.PHONE:
        rules.append(
            ValidationRule(
                type=ValidationRuleType.PATTERN,
                value=PHONE_PATTERN,
                message="Please enter a valid phone number",
            )
        )

    return rules


def section_name(section_id: str, fields: Sequence[GeneratedField]) -> str:
    """Name a section after keywords in its field labels."""
    labels = [f.label.lower() for f in fields]
    for keywords, name in SECTION_KEYWORDS:
        if any(keyword in label for label in labels for keyword in keywords):
            return name
    return f"Section {section_id.replace('section_', '')}"


@dataclass
class SynthesisResult:
    """Fields and sections generated from one element set."""

    fields: list[GeneratedField] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    groups: dict[int, list[FieldGroup]] = field(default_factory=dict)


class FieldSynthesizer:
    """Synthesizes GeneratedFields and Sections from FormElements.

    Rows never span pages: elements are partitioned by page number before
    clustering, and pages are processed in ascending order.
    """

    def __init__(
        self,
        clusterer: Optional[RowClusterer] = None,
        page_sizes: Optional[Mapping[int, tuple[float, float]]] = None,
        threshold_units: Optional[str] = None,
        pairing_distance: Optional[float] = None,
        section_gap: Optional[float] = None,
        low_confidence_threshold: Optional[float] = None,
        language: Optional[str] = None,
        source_language: Optional[str] = None,
    ):
        """Initialize synthesizer.

        Args:
            clusterer: Row clustering strategy (greedy first-match by default).
            page_sizes: Pixel size per page number, used to scale thresholds.
                Pages not listed use the reference page size.
            threshold_units: ``pixels`` or ``raw`` (default from settings).
            pairing_distance: Label/input pairing limit in pixels.
            section_gap: Vertical gap in pixels that opens a new section.
            low_confidence_threshold: Confidence below which fields are
                flagged for review.
            language: Display language for labels.
            source_language: Language the form was read in.
        """
        self.clusterer = clusterer or GreedyRowClusterer()
        self.page_sizes = dict(page_sizes or {})
        self.threshold_units = threshold_units or settings.threshold_units
        self.pairing_distance = settings.pairing_distance if pairing_distance is None else pairing_distance
        self.section_gap = settings.section_gap if section_gap is None else section_gap
        self.low_confidence_threshold = (
            settings.low_confidence_threshold if low_confidence_threshold is None else low_confidence_threshold
        )
        self.language = language or settings.display_language
        self.source_language = source_language or settings.source_language

        # Fail fast on bad units
        threshold_scale(None, self.threshold_units)

    def scale_for(self, page_number: int) -> tuple[float, float]:
        return threshold_scale(self.page_sizes.get(page_number), self.threshold_units)

    def _translate(self, text: str) -> str:
        return translate_label(text, self.language, self.source_language)

    # ------------------------------------------------------------------
    # Field construction
    # ------------------------------------------------------------------

    def field_from_element(self, element: FormElement, order: int) -> GeneratedField:
        """Build a standalone field from one element."""
        field_type = infer_field_type(element)
        label = self._translate(element.text)
        name = sanitize_name(element.text)
        required = infer_required(element.text)
        rules = build_validation_rules(element.text, field_type, required)

        if element.confidence < self.low_confidence_threshold:
            help_text = low_confidence_notice(element.confidence)
        else:
            help_text = generate_help_text(field_type, rules)

        phi = is_phi_text(label, name)
        return GeneratedField(
            id=f"field_{order + 1}",
            name=name,
            label=label,
            type=field_type,
            required=required,
            placeholder=generate_placeholder(field_type, label),
            help_text=help_text,
            order=order,
            validation_rules=rules,
            is_phi_field=phi,
            audit_required=phi,
            options=[FieldOption(label=self._translate(opt), value=opt) for opt in element.options or []],
            default_value=element.value or "",
            page_number=element.page_number,
            source_element_id=element.id,
        )

    def field_from_pair(self, label: FormElement, value: FormElement, order: int) -> GeneratedField:
        """Build a field from a label and the input paired with it."""
        generated = self.field_from_element(label, order)
        generated.default_value = value.value or value.text
        generated.paired_element_id = value.id

        lowest = min(label.confidence, value.confidence)
        if lowest < self.low_confidence_threshold:
            generated.help_text = low_confidence_notice(lowest)
            generated.validation_rules.append(
                ValidationRule(
                    type=ValidationRuleType.CUSTOM,
                    message=f"OCR confidence: {round_half_up(lowest)}% - Please verify",
                )
            )
        return generated

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    def group_rows(self, elements: Sequence[FormElement]) -> dict[int, list[FieldGroup]]:
        """Cluster each page's elements into rows."""
        by_page: dict[int, list[FormElement]] = defaultdict(list)
        for element in elements:
            by_page[element.page_number].append(element)
        return {
            page: self.clusterer.cluster(page_elements, self.scale_for(page))
            for page, page_elements in sorted(by_page.items())
        }

    def synthesize(self, elements: Sequence[FormElement]) -> list[GeneratedField]:
        """Generate fields for a set of elements."""
        return self.build(elements).fields

    def build(self, elements: Sequence[FormElement]) -> SynthesisResult:
        """Generate fields and sections for a set of elements.

        Args:
            elements: Elements in emission order, from one or more pages.

        Returns:
            SynthesisResult with fields in synthesis order and sections.
        """
        groups_by_page = self.group_rows(elements)
        fields: list[GeneratedField] = []
        grouped_ids: set[str] = set()

        for page, groups in groups_by_page.items():
            scale = self.scale_for(page)
            for group in groups:
                grouped_ids.update(e.id for e in group.elements)
                if len(group) == 1:
                    fields.append(self.field_from_element(group.elements[0], len(fields)))
                    continue

                pairing = pair_labels(group, self.pairing_distance, scale)
                for label, match in pairing.labels:
                    if match is None:
                        fields.append(self.field_from_element(label, len(fields)))
                    else:
                        fields.append(self.field_from_pair(label, match, len(fields)))
                for element in pairing.standalone:
                    fields.append(self.field_from_element(element, len(fields)))

        for element in elements:
            if element.id not in grouped_ids:
                fields.append(self.field_from_element(element, len(fields)))

        sections = self.derive_sections(elements, fields)
        logger.debug("Synthesized %d fields in %d sections", len(fields), len(sections))
        return SynthesisResult(fields=fields, sections=sections, groups=groups_by_page)

    def derive_sections(
        self,
        elements: Sequence[FormElement],
        fields: Sequence[GeneratedField],
    ) -> list[Section]:
        """Split fields into sections on large vertical gaps.

        Walks elements in their original order and places the fields
        sourced from each element in the open section. Elements without a
        field (such as inputs merged into a label's field) are skipped and
        leave the reference position unchanged. A new page also opens a
        new section.
        """
        by_source: dict[str, list[GeneratedField]] = defaultdict(list)
        for generated in fields:
            by_source[generated.source_element_id].append(generated)

        buckets: dict[str, list[GeneratedField]] = {}
        current = "section_1"
        last_top = 0.0
        last_page: Optional[int] = None

        for element in elements:
            owned = by_source.get(element.id)
            if not owned:
                continue

            top = element.bounding_box.top
            gap = (top - last_top) * self.scale_for(element.page_number)[1]
            new_page = last_page is not None and element.page_number != last_page
            if gap > self.section_gap or new_page:
                current = f"section_{len(buckets) + 1}"

            buckets.setdefault(current, []).extend(owned)
            last_top = top
            last_page = element.page_number

        if not buckets:
            return [
                Section(
                    id="section_1",
                    name="Main Section",
                    field_ids=[f.id for f in fields],
                    order=0,
                    collapsible=True,
                    default_expanded=True,
                )
            ]

        return [
            Section(
                id=section_id,
                name=section_name(section_id, members),
                field_ids=[f.id for f in members],
                order=index,
                collapsible=True,
                default_expanded=index == 0,
            )
            for index, (section_id, members) in enumerate(buckets.items())
        ]
