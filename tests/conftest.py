"""Pytest configuration and fixtures."""

import json

import pytest

from formint.models import Block, BoundingBox, ElementType, FormElement
from formint.pipeline import BlockGraph


class BlockBuilder:
    """Builds raw Textract-shaped block dicts."""

    @staticmethod
    def geometry(left, top, width=0.1, height=0.03):
        return {"BoundingBox": {"Left": left, "Top": top, "Width": width, "Height": height}}

    def word(self, block_id, text, left=0.1, top=0.1, confidence=99.0):
        return {
            "Id": block_id,
            "BlockType": "WORD",
            "Text": text,
            "Confidence": confidence,
            "Geometry": self.geometry(left, top),
        }

    def line(self, block_id, text, left=0.1, top=0.1, confidence=99.0, width=0.1):
        return {
            "Id": block_id,
            "BlockType": "LINE",
            "Text": text,
            "Confidence": confidence,
            "Geometry": self.geometry(left, top, width),
        }

    def key(self, block_id, child_ids, value_id=None, left=0.1, top=0.1, confidence=95.0):
        relationships = [{"Type": "CHILD", "Ids": list(child_ids)}]
        if value_id is not None:
            relationships.append({"Type": "VALUE", "Ids": [value_id]})
        return {
            "Id": block_id,
            "BlockType": "KEY_VALUE_SET",
            "EntityTypes": ["KEY"],
            "Confidence": confidence,
            "Geometry": self.geometry(left, top),
            "Relationships": relationships,
        }

    def value(self, block_id, child_ids=(), left=0.3, top=0.1, confidence=95.0):
        block = {
            "Id": block_id,
            "BlockType": "KEY_VALUE_SET",
            "EntityTypes": ["VALUE"],
            "Confidence": confidence,
            "Geometry": self.geometry(left, top),
        }
        if child_ids:
            block["Relationships"] = [{"Type": "CHILD", "Ids": list(child_ids)}]
        return block

    def selection(self, block_id, status, left=0.3, top=0.1, confidence=None):
        block = {
            "Id": block_id,
            "BlockType": "SELECTION_ELEMENT",
            "SelectionStatus": status,
            "Geometry": self.geometry(left, top, 0.02, 0.02),
        }
        if confidence is not None:
            block["Confidence"] = confidence
        return block

    def cell(self, block_id, row, column, child_ids=(), confidence=None, row_span=None, column_span=None):
        block = {"Id": block_id, "BlockType": "CELL", "RowIndex": row, "ColumnIndex": column}
        if child_ids:
            block["Relationships"] = [{"Type": "CHILD", "Ids": list(child_ids)}]
        if confidence is not None:
            block["Confidence"] = confidence
        if row_span is not None:
            block["RowSpan"] = row_span
        if column_span is not None:
            block["ColumnSpan"] = column_span
        return block

    def table(self, block_id, cell_ids, left=0.1, top=0.6, confidence=None):
        block = {
            "Id": block_id,
            "BlockType": "TABLE",
            "Geometry": self.geometry(left, top, 0.8, 0.2),
            "Relationships": [{"Type": "CHILD", "Ids": list(cell_ids)}],
        }
        if confidence is not None:
            block["Confidence"] = confidence
        return block

    def parse(self, raw_blocks):
        return [Block.model_validate(raw) for raw in raw_blocks]

    def graph(self, raw_blocks):
        return BlockGraph(self.parse(raw_blocks))


@pytest.fixture
def blocks():
    """Builder for raw provider blocks."""
    return BlockBuilder()


@pytest.fixture
def patient_form_raw(blocks):
    """A one-page patient intake form as raw Textract blocks.

    Rows (normalized top): title .10, name .20, date of birth .30 (low
    confidence key), gender .40 with two checkboxes, a 2x2 table at .60.
    """
    return [
        blocks.line("line-title", "Patient Information Form", left=0.3, top=0.1, confidence=99.0),
        blocks.key("key-name", ["w-patient", "w-name"], "val-name", left=0.1, top=0.2, confidence=92.0),
        blocks.word("w-patient", "Patient", left=0.1, top=0.2),
        blocks.word("w-name", "Name:", left=0.17, top=0.2),
        blocks.value("val-name", ["w-john", "w-smith"], left=0.3, top=0.2),
        blocks.word("w-john", "John", left=0.3, top=0.2),
        blocks.word("w-smith", "Smith", left=0.36, top=0.2),
        blocks.key("key-dob", ["w-dob1", "w-dob2", "w-dob3"], "val-dob", left=0.1, top=0.3, confidence=75.0),
        blocks.word("w-dob1", "Date"),
        blocks.word("w-dob2", "of"),
        blocks.word("w-dob3", "Birth:"),
        blocks.value("val-dob", ["w-dob-value"], left=0.3, top=0.3),
        blocks.word("w-dob-value", "01/15/1980", left=0.3, top=0.3),
        blocks.key("key-gender", ["w-gender"], "val-gender", left=0.15, top=0.4, confidence=90.0),
        blocks.word("w-gender", "Gender:"),
        blocks.value("val-gender", left=0.3, top=0.4),
        blocks.selection("sel-male", "SELECTED", left=0.3, top=0.4, confidence=98.0),
        blocks.selection("sel-female", "NOT_SELECTED", left=0.45, top=0.4),
        blocks.line("line-male", "Male", left=0.33, top=0.4, confidence=96.0),
        blocks.line("line-female", "Female", left=0.48, top=0.4, confidence=96.0),
        blocks.table("table-meds", ["cell-11", "cell-22"], left=0.1, top=0.6, confidence=97.0),
        blocks.cell("cell-11", 1, 1, ["w-med"]),
        blocks.cell("cell-22", 2, 2, ["w-dose"], confidence=88.0),
        blocks.word("w-med", "Medication"),
        blocks.word("w-dose", "10mg"),
    ]


@pytest.fixture
def patient_form_blocks(blocks, patient_form_raw):
    """Parsed blocks of the patient form."""
    return blocks.parse(patient_form_raw)


@pytest.fixture
def patient_form_path(tmp_path, patient_form_raw):
    """Patient form saved as an AnalyzeDocument response."""
    path = tmp_path / "patient_form.json"
    path.write_text(
        json.dumps({"DocumentMetadata": {"Pages": 1}, "Blocks": patient_form_raw}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def two_page_path(tmp_path, blocks, patient_form_raw):
    """Two-page response: the patient form, then a page of contact details."""
    page_one = [dict(raw, Page=1) for raw in patient_form_raw]
    page_two = [
        dict(blocks.key("key-phone", ["w-phone"], "val-phone", left=0.1, top=0.2), Page=2),
        dict(blocks.word("w-phone", "Phone:"), Page=2),
        dict(blocks.value("val-phone", ["w-phone-value"], left=0.3, top=0.2), Page=2),
        dict(blocks.word("w-phone-value", "555-123-4567"), Page=2),
    ]
    path = tmp_path / "two_pages.json"
    path.write_text(
        json.dumps({"DocumentMetadata": {"Pages": 2}, "Blocks": page_one + page_two}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_element():
    """Factory for FormElements at a normalized position."""
    counter = {"n": 0}

    def _make(
        text,
        type=ElementType.TEXT,
        left=0.1,
        top=0.1,
        confidence=95.0,
        page_number=1,
        value=None,
        width=0.1,
        height=0.03,
        element_id=None,
    ):
        if element_id is None:
            element_id = f"element-{counter['n']}"
            counter["n"] += 1
        return FormElement(
            id=element_id,
            type=type,
            text=text,
            confidence=confidence,
            bounding_box=BoundingBox(left=left, top=top, width=width, height=height),
            page_number=page_number,
            value=value,
        )

    return _make


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir
