import logging
from dataclasses import dataclass, replace

from column_descriptor import build_columns
from field_resolver import find_record, record_id, resolve_field
from grid_view import project, visible_records
from metadata_provider import normalize_error
from table_state import EditingCursor, as_records, initial_state, reset_state
from table_undo import TableUndo

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class NavigationRequest:
    record_id: object
    page_type: str = "record"
    action: str = "view"


class DataTable:
    """Handles grid interaction events and publishes selection/edit outputs.

    Every handler replaces ``self.state`` with a new snapshot; ``view`` and the
    output properties are recomputed from that snapshot on each access.

    Callbacks:
        on_change(name, value): output published to the host
            (``selectedRecords``, ``selectedCount``, ``editedRecords``).
        on_navigate(request): a relationship link was followed.
        on_status(msg, seconds): transient status text.
        schedule(callback): run ``callback`` after the current update cycle.
            Without one, callbacks queue until ``run_deferred()``.
        focus_cell(record_id, field): move input focus to a cell.
    """

    def __init__(
        self,
        config=None,
        records=(),
        on_change=None,
        on_navigate=None,
        on_status=None,
        schedule=None,
        focus_cell=None,
    ):
        self.state = initial_state(config, records)
        self._on_change = on_change
        self._on_navigate = on_navigate
        self._on_status = on_status
        self._schedule = schedule
        self._focus_cell = focus_cell
        self._deferred = []
        self._tab_navigating = False
        self.undo_mgr = TableUndo(self)

    def bind_host(self, on_status=None, on_navigate=None, focus_cell=None, on_change=None):
        """Attach host callbacks after construction; ``None`` keeps the current one."""
        if on_status is not None:
            self._on_status = on_status
        if on_navigate is not None:
            self._on_navigate = on_navigate
        if focus_cell is not None:
            self._focus_cell = focus_cell
        if on_change is not None:
            self._on_change = on_change

    # ---------- helpers ----------
    def _set_status(self, msg, seconds=3):
        if self._on_status is not None:
            self._on_status(msg, seconds)

    def _emit(self, name, value):
        if self._on_change is not None:
            self._on_change(name, value)

    def _defer(self, callback):
        if self._schedule is not None:
            self._schedule(callback)
        else:
            self._deferred.append(callback)

    def run_deferred(self) -> int:
        pending, self._deferred = self._deferred, []
        for callback in pending:
            callback()
        return len(pending)

    def column(self, field_name):
        for col in self.state.columns:
            if col.field_api_name == field_name:
                return col
        return None

    def _record(self, rid):
        return find_record(self.state.records, rid)

    @property
    def config(self):
        return self.state.config

    @property
    def view(self):
        return project(self.state)

    @property
    def editing(self):
        return self.state.editing

    @property
    def is_tab_navigating(self) -> bool:
        return self._tab_navigating

    # ---------- metadata / records ----------
    def load_metadata(self, provider) -> bool:
        config = self.state.config
        try:
            metadata = provider.get_column_metadata(
                config.object_api_name, list(config.field_names)
            )
        except Exception as exc:
            message = normalize_error(exc)
            logger.warning("Column metadata unavailable: %s", message)
            self.state = replace(
                self.state, columns=(), metadata_loaded=True, metadata_error=message
            )
            return False
        self.set_columns(metadata)
        return True

    def set_columns(self, metadata):
        self.state = replace(
            self.state,
            columns=build_columns(metadata, self.state.config),
            metadata_loaded=True,
            metadata_error=None,
        )

    def set_records(self, records, prune_missing=False):
        """Swap in a new record collection.

        Selection and edits for ids that disappeared are kept unless
        ``prune_missing`` is set; outputs skip them either way.
        """
        state = replace(self.state, records=as_records(records))
        if prune_missing:
            known = [record_id(r) for r in state.records]
            state = replace(
                state,
                selection=state.selection.prune(known),
                edits=state.edits.prune(known),
            )
        if state.editing is not None and find_record(state.records, state.editing.record_id) is None:
            state = replace(state, editing=None)
        self.state = state

    def reset(self):
        self.state = reset_state(self.state)
        self.undo_mgr.clear()
        self._deferred = []
        self._tab_navigating = False
        self._publish_selection()
        if self.state.config.enable_inline_edit:
            # hosts hold the last editedRecords; publish the empty ledger
            self._publish_edits()

    # ---------- outputs ----------
    @property
    def selected_records(self) -> list:
        return self.state.selection.selected_records(self.state.records)

    @property
    def selected_count(self) -> int:
        return len(self.selected_records)

    @property
    def edited_records(self) -> list:
        selection = self.state.selection
        selected = selection.ids if selection.is_selectable else None
        return self.state.edits.edited_records(self.state.records, selected)

    def outputs(self) -> dict:
        selected = self.selected_records
        return {
            "selectedRecords": selected,
            "selectedCount": len(selected),
            "editedRecords": self.edited_records,
        }

    def _publish_selection(self):
        selected = self.selected_records
        self._emit("selectedRecords", selected)
        self._emit("selectedCount", len(selected))
        if self.state.config.enable_inline_edit and len(self.state.edits) > 0:
            self._publish_edits()

    def _publish_edits(self):
        self._emit("editedRecords", self.edited_records)

    # ---------- selection ----------
    def _apply_selection(self, selection, action):
        if selection != self.state.selection:
            self.undo_mgr.push_undo(action)
            self.state = replace(self.state, selection=selection)
        self._publish_selection()
        return True

    def toggle_row(self, rid) -> bool:
        if not self.state.selection.is_selectable:
            return False
        if rid is None or self._record(rid) is None:
            logger.debug("Ignoring selection toggle for unknown record %r", rid)
            return False
        return self._apply_selection(self.state.selection.toggle(rid), "toggle")

    def toggle_all(self) -> bool:
        if not self.state.selection.is_multi:
            return False
        visible = [record_id(r) for r in visible_records(self.state)]
        return self._apply_selection(self.state.selection.select_all(visible), "toggle_all")

    # ---------- editing ----------
    def can_edit(self, rid, field_name) -> bool:
        if not self.state.config.enable_inline_edit:
            return False
        col = self.column(field_name)
        if col is None or not col.is_editable:
            return False
        return rid is not None and self._record(rid) is not None

    def start_edit(self, rid, field_name) -> bool:
        if not self.can_edit(rid, field_name):
            logger.debug("Cell %r.%s is not editable", rid, field_name)
            return False
        self.state = replace(self.state, editing=EditingCursor(rid, field_name))
        self.undo_mgr.reset_last_action()
        return True

    def _stop_editing(self):
        if self.state.editing is not None:
            self.state = replace(self.state, editing=None)
        self.undo_mgr.reset_last_action()

    def set_edit(self, rid, field_name, value) -> bool:
        """Record ``value`` for a cell, comparing against the stored value."""
        record = self._record(rid)
        if record is None or not field_name:
            logger.debug("Ignoring edit for unknown record %r", rid)
            return False
        original = resolve_field(record, field_name)
        edits = self.state.edits.set_edit(rid, field_name, value, original)
        if edits != self.state.edits:
            self.undo_mgr.push_undo("edit", (rid, field_name))
            self.state = replace(self.state, edits=edits)
        self._publish_edits()
        return True

    def handle_cell_input(self, rid, field_name, value) -> bool:
        return self.set_edit(rid, field_name, value)

    def choose_option(self, rid, field_name, value) -> bool:
        committed = self.set_edit(rid, field_name, value)
        self._stop_editing()
        return committed

    def handle_cell_blur(self) -> bool:
        if self._tab_navigating:
            return False
        self._stop_editing()
        return True

    def handle_cell_key(self, key, rid=None, field_name=None, value=_UNSET, shift=False) -> bool:
        if key in ("Enter", "Escape"):
            self._stop_editing()
            return True
        if key != "Tab":
            return False
        cursor = self.state.editing
        if rid is None and cursor is not None:
            rid = cursor.record_id
        if not field_name and cursor is not None:
            field_name = cursor.field
        if rid is None or not field_name:
            return False
        if value is not _UNSET:
            self.set_edit(rid, field_name, value)
        return self._tab_to(rid, field_name, -1 if shift else 1)

    def _tab_to(self, rid, field_name, step) -> bool:
        ids = [record_id(r) for r in visible_records(self.state)]
        if rid not in ids:
            self._stop_editing()
            return False
        target = ids.index(rid) + step
        if target < 0 or target >= len(ids) or ids[target] is None:
            self._stop_editing()
            return False
        self._tab_navigating = True
        self.state = replace(self.state, editing=EditingCursor(ids[target], field_name))
        self.undo_mgr.reset_last_action()
        self._defer(self._finish_tab_navigation)
        return True

    def _finish_tab_navigation(self):
        self._tab_navigating = False
        cursor = self.state.editing
        if cursor is None:
            return
        if self.view.find_cell(cursor.record_id, cursor.field) is None:
            logger.debug("Focus target %r.%s no longer rendered", cursor.record_id, cursor.field)
            return
        if self._focus_cell is not None:
            self._focus_cell(cursor.record_id, cursor.field)

    # ---------- search / sort ----------
    def set_search(self, term):
        self.state = replace(self.state, search=term or "")

    def clear_search(self):
        self.set_search("")

    def sort_by(self, field_name) -> bool:
        if not field_name:
            return False
        self.state = replace(self.state, sort=self.state.sort.toggled(field_name))
        return True

    # ---------- links ----------
    def open_link(self, rid):
        if rid is None or rid == "":
            return None
        request = NavigationRequest(record_id=rid)
        if self._on_navigate is not None:
            self._on_navigate(request)
        return request

    # ---------- undo/redo ----------
    def undo(self) -> bool:
        if not self.undo_mgr.undo():
            return False
        self._publish_selection()
        self._publish_edits()
        return True

    def redo(self) -> bool:
        if not self.undo_mgr.redo():
            return False
        self._publish_selection()
        self._publish_edits()
        return True
