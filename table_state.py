from dataclasses import dataclass, field, replace
from typing import Optional

from edit_ledger import EditLedger
from grid_pipeline import SortState
from selection_model import SelectionState, parse_selection_mode
from table_config import TableConfig


@dataclass(frozen=True)
class EditingCursor:
    record_id: object
    field: str

    def matches(self, rid, field_name) -> bool:
        return self.record_id == rid and self.field == field_name


@dataclass(frozen=True)
class TableState:
    """Everything the grid view is projected from."""

    config: TableConfig = field(default_factory=TableConfig)
    records: tuple = ()
    columns: tuple = ()
    selection: SelectionState = field(default_factory=SelectionState)
    edits: EditLedger = field(default_factory=EditLedger)
    search: str = ""
    sort: SortState = field(default_factory=SortState)
    editing: Optional[EditingCursor] = None

    # metadata snapshot status
    metadata_loaded: bool = False
    metadata_error: Optional[str] = None


def as_records(records) -> tuple:
    if not records:
        return ()
    if isinstance(records, dict):
        return (records,)
    return tuple(r for r in records if r is not None)


def initial_state(config=None, records=()) -> TableState:
    config = config or TableConfig()
    return TableState(
        config=config,
        records=as_records(records),
        selection=SelectionState(mode=parse_selection_mode(config.selection_mode)),
    )


def reset_state(state: TableState) -> TableState:
    """Drop interaction state, keep records, columns and metadata status."""
    return replace(
        state,
        selection=SelectionState(mode=state.selection.mode),
        edits=EditLedger(),
        search="",
        sort=SortState(),
        editing=None,
    )
