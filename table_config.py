from dataclasses import dataclass

DEFAULT_VISIBLE_ROWS = 10


def split_list(text, keep_blanks=False) -> list:
    """Split a comma-separated host input into trimmed items."""
    if text is None:
        return []
    if isinstance(text, (list, tuple)):
        items = [str(item).strip() for item in text]
    else:
        items = [item.strip() for item in str(text).split(",")]
    if keep_blanks:
        return items if any(items) else []
    return [item for item in items if item]


def _as_bool(value) -> bool:
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


def _as_int(value, default):
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class TableConfig:
    object_api_name: str = ""
    field_names: tuple = ("Name",)
    column_labels: tuple = ()
    editable_fields: tuple = ()
    selection_mode: str = "View Only"
    enable_inline_edit: bool = False
    show_search: bool = False
    visible_rows: int = DEFAULT_VISIBLE_ROWS
    header_text: str = ""
    show_row_numbers: bool = False

    @classmethod
    def from_inputs(cls, inputs):
        """Read host input variables (camelCase names, string-typed values)."""
        inputs = inputs or {}
        get = inputs.get
        field_names = split_list(get("fieldNames"))
        return cls(
            object_api_name=(get("objectApiName") or "").strip(),
            field_names=tuple(field_names) if field_names else cls.field_names,
            column_labels=tuple(split_list(get("columnLabels"), keep_blanks=True)),
            editable_fields=tuple(split_list(get("editableFields"))),
            selection_mode=get("selectionMode") or "View Only",
            enable_inline_edit=_as_bool(get("enableInlineEdit")),
            show_search=_as_bool(get("showSearch")),
            visible_rows=_as_int(get("visibleRows"), DEFAULT_VISIBLE_ROWS),
            header_text=get("headerText") or "",
            show_row_numbers=_as_bool(get("showRowNumbers")),
        )

    def to_inputs(self) -> dict:
        return {
            "objectApiName": self.object_api_name,
            "fieldNames": ",".join(self.field_names),
            "columnLabels": ",".join(self.column_labels),
            "editableFields": ",".join(self.editable_fields),
            "selectionMode": self.selection_mode,
            "enableInlineEdit": self.enable_inline_edit,
            "showSearch": self.show_search,
            "visibleRows": self.visible_rows,
            "headerText": self.header_text,
            "showRowNumbers": self.show_row_numbers,
        }
