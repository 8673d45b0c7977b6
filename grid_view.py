from dataclasses import dataclass
from typing import Optional

import pandas as pd

from column_descriptor import INPUT_CHOICE
from field_resolver import record_id, resolve_field
from grid_pipeline import derive_view, effective_value
from value_formatter import format_value


@dataclass(frozen=True)
class ColumnView:
    key: str
    field: str
    label: str
    data_type: str
    is_editable: bool
    is_sorted: bool = False
    sort_direction: Optional[str] = None

    @property
    def aria_sort(self) -> str:
        if not self.is_sorted:
            return "none"
        return "descending" if self.sort_direction == "desc" else "ascending"


@dataclass(frozen=True)
class CellView:
    key: str
    field: str
    value: object
    display_value: str
    can_edit: bool
    is_editing: bool
    is_edited: bool
    is_link: bool
    link_record_id: object
    input_kind: str
    choice_options: tuple = ()


@dataclass(frozen=True)
class RowView:
    key: str
    record_id: object
    row_number: int
    is_selected: bool
    cells: tuple


@dataclass(frozen=True)
class GridView:
    columns: tuple
    rows: tuple
    total_count: int = 0
    header_text: str = ""
    show_row_numbers: bool = False
    is_selectable: bool = False
    is_multi_select: bool = False
    is_all_selected: bool = False
    show_search_bar: bool = False
    search_term: str = ""
    visible_rows: int = 10
    metadata_error: Optional[str] = None

    @property
    def has_records(self) -> bool:
        return self.total_count > 0

    @property
    def result_count_text(self) -> str:
        if self.search_term and len(self.rows) != self.total_count:
            return f"Showing {len(self.rows)} of {self.total_count}"
        return ""

    def visible_ids(self) -> list:
        return [row.record_id for row in self.rows]

    def row_index(self, rid) -> int:
        for index, row in enumerate(self.rows):
            if row.record_id is not None and row.record_id == rid:
                return index
        return -1

    def find_cell(self, rid, field_name):
        index = self.row_index(rid)
        if index < 0:
            return None
        for cell in self.rows[index].cells:
            if cell.field == field_name:
                return cell
        return None

    def to_frame(self) -> pd.DataFrame:
        """Display strings laid out as a DataFrame, one column per grid column."""
        labels = [col.label for col in self.columns]
        data = [[cell.display_value for cell in row.cells] for row in self.rows]
        frame = pd.DataFrame(data, columns=labels)
        if self.is_selectable:
            marks = ["[x]" if row.is_selected else "[ ]" for row in self.rows]
            frame.insert(0, "", marks, allow_duplicates=True)
        if self.show_row_numbers:
            frame.index = pd.Index([row.row_number for row in self.rows], name="#")
        return frame


def _link_target(col, record, value):
    if not col.is_relationship or value is None or not col.relationship_id_field:
        return None
    return resolve_field(record, col.relationship_id_field)


def _project_cell(col, col_index, record, state):
    rid = record_id(record)
    value = effective_value(record, col.field_api_name, state.edits)
    link_id = _link_target(col, record, value)
    editing = state.editing is not None and state.editing.matches(rid, col.field_api_name)
    return CellView(
        key=f"cell-{rid}-{col_index}",
        field=col.field_api_name,
        value=value,
        display_value=format_value(value, col.data_type, col.choice_values),
        can_edit=col.is_editable,
        is_editing=editing,
        is_edited=rid is not None and state.edits.has_edit(rid, col.field_api_name),
        is_link=link_id is not None,
        link_record_id=link_id,
        input_kind=col.input_kind,
        choice_options=col.choice_values if col.input_kind == INPUT_CHOICE else (),
    )


def project_columns(state) -> tuple:
    sort = state.sort
    return tuple(
        ColumnView(
            key=f"col-{index}",
            field=col.field_api_name,
            label=col.label,
            data_type=col.data_type,
            is_editable=col.is_editable,
            is_sorted=sort.field == col.field_api_name,
            sort_direction=sort.direction if sort.field == col.field_api_name else None,
        )
        for index, col in enumerate(state.columns)
    )


def visible_records(state) -> list:
    if not state.records or not state.metadata_loaded:
        return []
    return derive_view(state.records, state.columns, state.search, state.sort, state.edits)


def project(state) -> GridView:
    """Recompute the whole grid view from the table state."""
    records = visible_records(state)
    rows = []
    for index, record in enumerate(records):
        rid = record_id(record)
        cells = tuple(
            _project_cell(col, col_index, record, state)
            for col_index, col in enumerate(state.columns)
        )
        rows.append(
            RowView(
                key=str(rid) if rid is not None else f"row-{index}",
                record_id=rid,
                row_number=index + 1,
                is_selected=rid is not None and rid in state.selection,
                cells=cells,
            )
        )
    visible = [row.record_id for row in rows]
    config = state.config
    return GridView(
        columns=project_columns(state),
        rows=tuple(rows),
        total_count=len(state.records),
        header_text=(config.header_text or "").strip(),
        show_row_numbers=config.show_row_numbers,
        is_selectable=state.selection.is_selectable,
        is_multi_select=state.selection.is_multi,
        is_all_selected=state.selection.is_all_selected(visible),
        show_search_bar=bool(config.show_search) and len(state.records) > 0,
        search_term=state.search,
        visible_rows=config.visible_rows,
        metadata_error=state.metadata_error,
    )
