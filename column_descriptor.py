from dataclasses import dataclass
from typing import Optional

from cell_coercion import CHOICE_TYPES, NUMERIC_TYPES

INPUT_NUMBER = "number"
INPUT_DATE = "date"
INPUT_DATETIME = "datetime"
INPUT_TOGGLE = "toggle"
INPUT_CHOICE = "choice"
INPUT_TEXT = "text"


@dataclass(frozen=True)
class ChoiceValue:
    value: str
    label: str

    @classmethod
    def from_metadata(cls, raw):
        if isinstance(raw, ChoiceValue):
            return raw
        value = raw.get("value")
        label = raw.get("label")
        return cls(value=value, label=label if label is not None else value)


@dataclass(frozen=True)
class ColumnDescriptor:
    field_api_name: str
    label: str
    data_type: str = "STRING"
    is_editable: bool = False
    is_relationship: bool = False
    relationship_id_field: Optional[str] = None
    choice_values: tuple = ()

    @classmethod
    def from_metadata(cls, raw):
        """Build a descriptor from metadata-provider output (camelCase keys)."""
        if isinstance(raw, ColumnDescriptor):
            return raw
        field_api_name = raw.get("fieldApiName") or raw.get("field_api_name")
        choices = raw.get("picklistValues")
        if choices is None:
            choices = raw.get("choiceValues") or raw.get("choice_values") or ()
        return cls(
            field_api_name=field_api_name,
            label=raw.get("label") or field_api_name,
            data_type=(raw.get("dataType") or raw.get("data_type") or "STRING").upper(),
            is_editable=bool(raw.get("isEditable", raw.get("is_editable", False))),
            is_relationship=bool(
                raw.get("isRelationship", raw.get("is_relationship", False))
            ),
            relationship_id_field=raw.get("relationshipIdField")
            or raw.get("relationship_id_field"),
            choice_values=tuple(ChoiceValue.from_metadata(c) for c in choices),
        )

    @property
    def input_kind(self) -> str:
        return input_kind(self.data_type)


def input_kind(data_type) -> str:
    data_type = (data_type or "").upper()
    if data_type in NUMERIC_TYPES:
        return INPUT_NUMBER
    if data_type == "DATE":
        return INPUT_DATE
    if data_type == "DATETIME":
        return INPUT_DATETIME
    if data_type == "BOOLEAN":
        return INPUT_TOGGLE
    if data_type in CHOICE_TYPES:
        return INPUT_CHOICE
    return INPUT_TEXT


def build_columns(metadata, config) -> tuple:
    """Apply custom labels and the editability override to provider columns."""
    custom_labels = list(config.column_labels or [])
    allowed = set(config.editable_fields or [])
    columns = []
    for index, raw in enumerate(metadata or []):
        col = ColumnDescriptor.from_metadata(raw)
        if not col.field_api_name:
            continue
        custom = custom_labels[index] if index < len(custom_labels) else ""
        editable = (
            bool(config.enable_inline_edit)
            and col.is_editable
            and not col.is_relationship
            and (not allowed or col.field_api_name in allowed)
        )
        columns.append(
            ColumnDescriptor(
                field_api_name=col.field_api_name,
                label=custom or col.label or col.field_api_name,
                data_type=col.data_type,
                is_editable=editable,
                is_relationship=col.is_relationship,
                relationship_id_field=col.relationship_id_field,
                choice_values=col.choice_values,
            )
        )
    return tuple(columns)
