"""Tests for element normalization."""

import pytest
from pydantic import ValidationError

from formint.models import ElementType
from formint.pipeline import ElementNormalizer, IdAllocator, average_confidence


class TestElementNormalizer:
    """Tests for ElementNormalizer.normalize."""

    @pytest.fixture
    def extraction(self, patient_form_blocks):
        return ElementNormalizer().normalize(patient_form_blocks)

    def test_emission_order(self, extraction):
        """Pairs, then marks, then tables, then residual lines."""
        assert [(e.type, e.text) for e in extraction.elements] == [
            (ElementType.LABEL, "Patient Name:"),
            (ElementType.INPUT, "John Smith"),
            (ElementType.LABEL, "Date of Birth:"),
            (ElementType.INPUT, "01/15/1980"),
            (ElementType.LABEL, "Gender:"),
            (ElementType.CHECKBOX, "☑"),
            (ElementType.CHECKBOX, "☐"),
            (ElementType.TABLE, "Table 2x2"),
            (ElementType.TEXT, "Patient Information Form"),
            (ElementType.TEXT, "Male"),
            (ElementType.TEXT, "Female"),
        ]

    def test_sequential_ids(self, extraction):
        """Ids should follow emission order."""
        assert [e.id for e in extraction.elements] == [f"element-{n}" for n in range(11)]

    def test_pair_links_both_ways(self, extraction):
        """Label and input should reference each other."""
        label, value = extraction.elements[0], extraction.elements[1]

        assert label.related_element_ids == {value.id}
        assert value.related_element_ids == {label.id}

    def test_empty_value_label_only(self, extraction):
        """A key with an empty value should produce a lone label."""
        gender = extraction.elements[4]

        assert gender.text == "Gender:"
        assert gender.related_element_ids == set()
        assert extraction.elements[5].type == ElementType.CHECKBOX

    def test_input_takes_key_confidence(self, extraction):
        """The input element should carry the KEY block's confidence."""
        assert extraction.elements[3].confidence == 75.0

    def test_default_confidence(self, extraction):
        """Blocks without confidence should default to 95."""
        assert extraction.elements[6].confidence == 95.0

    def test_selection_values(self, extraction):
        """Checkbox elements carry a checked or unchecked value."""
        assert extraction.elements[5].value == "checked"
        assert extraction.elements[6].value == "unchecked"

    def test_table_summary(self, extraction):
        """Each table should get a summary element pointing at it."""
        summary = extraction.elements[7]

        assert summary.table_id == extraction.tables[0].id
        assert summary.confidence == 97.0

    def test_kv_children_not_repeated(self, blocks):
        """LINE blocks under a KEY_VALUE_SET should not reappear as text."""
        raw = [
            blocks.key("k", ["line-key"], "v"),
            blocks.line("line-key", "Email:"),
            blocks.value("v", ["line-value"]),
            blocks.line("line-value", "a@b.co"),
            blocks.line("line-free", "Thank you"),
        ]
        extraction = ElementNormalizer().normalize(blocks.parse(raw))

        texts = [(e.type, e.text) for e in extraction.elements]
        assert texts == [
            (ElementType.LABEL, "Email:"),
            (ElementType.INPUT, "a@b.co"),
            (ElementType.TEXT, "Thank you"),
        ]

    def test_average_confidence(self, extraction):
        """Page confidence should be the rounded mean of element confidences."""
        assert extraction.confidence == 91

    def test_page_number_stamped(self, patient_form_blocks):
        """Every element carries its page number."""
        extraction = ElementNormalizer().normalize(patient_form_blocks, page_number=3)
        assert {e.page_number for e in extraction.elements} == {3}
        assert extraction.tables[0].page_number == 3

    def test_ids_unique_across_pages(self, patient_form_blocks):
        """A shared allocator should keep ids unique over several pages."""
        normalizer = ElementNormalizer(IdAllocator())
        first = normalizer.normalize(patient_form_blocks, page_number=1)
        second = normalizer.normalize(patient_form_blocks, page_number=2)

        ids = [e.id for e in first.elements + second.elements]
        assert len(ids) == len(set(ids))
        assert second.elements[0].id == "element-11"

    def test_empty_page(self):
        """A page with no blocks yields no elements."""
        extraction = ElementNormalizer().normalize([])
        assert extraction.elements == []
        assert extraction.confidence == 0


class TestFormElementEditing:
    """Tests for which element attributes may change."""

    def test_type_and_value_editable(self, make_element):
        """Type and value stay editable after creation."""
        element = make_element("☐", type=ElementType.CHECKBOX)
        element.type = "radio"
        element.value = "checked"

        assert element.type == ElementType.RADIO
        assert element.value == "checked"

    def test_geometry_frozen(self, make_element):
        """Text, confidence and geometry should be read-only."""
        element = make_element("Name")

        with pytest.raises(ValidationError):
            element.text = "Other"
        with pytest.raises(ValidationError):
            element.confidence = 10.0


def test_average_confidence_rounds_half_up(make_element):
    """Page confidence is the mean rounded half up."""
    elements = [make_element("a", confidence=80.0), make_element("b", confidence=81.0)]
    assert average_confidence(elements) == 81


class TestIdAllocator:
    """Tests for run-wide id allocation."""

    def test_counter_per_prefix(self):
        """Each prefix should count from zero on its own."""
        ids = IdAllocator()

        assert [ids.next("element"), ids.next("element"), ids.next("table")] == [
            "element-0",
            "element-1",
            "table-0",
        ]
