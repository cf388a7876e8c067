"""Generated form fields and derived sections."""

from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .base import FieldType, ValidationRuleType


class ValidationRule(BaseModel):
    """Single validation constraint on a field."""

    type: ValidationRuleType
    value: Optional[Union[bool, int, float, str]] = None
    message: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FieldOption(BaseModel):
    """Choice offered by a select or radio field."""

    label: str
    value: str


class GeneratedField(BaseModel):
    """
    Structured form-field definition offered for human review.

    Fields are regenerated wholesale whenever the underlying elements
    change, so reviewer edits made here are not merged back.
    ``source_element_id`` is the stable link back to the element the field
    was synthesized from and drives section assignment.
    """

    id: str
    name: str = Field(..., description="Sanitized snake_case name")
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    placeholder: str = ""
    help_text: str = ""
    order: int = Field(..., ge=0)
    validation_rules: list[ValidationRule] = Field(default_factory=list)
    is_phi_field: bool = False
    audit_required: bool = False
    options: list[FieldOption] = Field(default_factory=list)
    default_value: str = ""
    page_number: Optional[int] = Field(None, ge=1)
    source_element_id: str
    paired_element_id: Optional[str] = Field(None, description="Input element merged into this field")

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def has_rule(self, rule_type: ValidationRuleType) -> bool:
        """Check whether a rule of the given type is attached."""
        return any(rule.type == rule_type for rule in self.validation_rules)


class Section(BaseModel):
    """Derived grouping of fields; never the authoritative field container."""

    id: str
    name: str
    field_ids: list[str] = Field(default_factory=list)
    order: int = Field(default=0, ge=0)
    collapsible: bool = True
    default_expanded: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True
