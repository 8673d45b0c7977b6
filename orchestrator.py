# ~/Apps/flowtable/orchestrator.py
import curses
import logging
import time

from cell_coercion import coerce_bool, coerce_input
from column_descriptor import INPUT_TOGGLE
from field_resolver import find_record
from grid_pipeline import effective_value
from grid_pane import GridPane
from screen_layout import ScreenLayout
from status_bar import render_status
from value_formatter import to_text

logger = logging.getLogger(__name__)

KEY_ESC = 27
KEY_TAB = 9
KEY_CTRL_C = 3
KEY_CTRL_R = 18
KEY_CTRL_U = 21
ENTER_KEYS = (10, 13, curses.KEY_ENTER)
BACKSPACE_KEYS = (8, 127, curses.KEY_BACKSPACE)


class Orchestrator:
    def __init__(self, stdscr, table, file_path=None):
        self.stdscr = stdscr
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        curses.raw()
        self.stdscr.nodelay(False)
        self.stdscr.timeout(100)

        self.table = table
        self.file_path = file_path
        self.layout = ScreenLayout(stdscr)
        self.grid = GridPane(table.view)

        # wire host callbacks into the table
        table.bind_host(
            on_status=self._set_status,
            on_navigate=self._navigate,
            focus_cell=self._focus_cell,
        )

        self.mode = "VIEW"  # VIEW, EDIT, SEARCH
        self.edit_buffer = None
        self.search_buffer = ""
        self._search_before = ""
        self.navigations = []

        # ---- status ----
        self.status_msg = None
        self.status_msg_until = 0

    # ---------------- helpers ----------------

    def _set_status(self, msg, seconds=3):
        self.status_msg = msg
        self.status_msg_until = time.time() + seconds

    def _navigate(self, request):
        self.navigations.append(request)
        logger.info("Navigate to %s %s", request.page_type, request.record_id)
        self._set_status(f"Open record {request.record_id}", 3)

    def _focus_cell(self, rid, field_name):
        self._sync_view()
        if not self.grid.select_cell(rid, field_name):
            return
        self.grid.adjust_col_viewport(self.layout.table_win)
        self._load_edit_buffer()

    def _sync_view(self):
        self.grid.set_view(self.table.view)

    def _current_target(self):
        row = self.grid.current_row()
        col = self.grid.current_column()
        if row is None or col is None:
            return None, None
        return row.record_id, col.field

    def _editing_target(self):
        """(cursor, column descriptor, current effective value) for the open editor."""
        cursor = self.table.editing
        if cursor is None:
            return None, None, None
        col = self.table.column(cursor.field)
        record = find_record(self.table.state.records, cursor.record_id)
        value = effective_value(record, cursor.field, self.table.state.edits) if record else None
        return cursor, col, value

    def _load_edit_buffer(self):
        _, _, value = self._editing_target()
        self.edit_buffer = to_text(value)

    # ---------------- editing ----------------

    def _begin_edit(self):
        rid, field_name = self._current_target()
        if rid is None:
            return
        if not self.table.start_edit(rid, field_name):
            self._set_status("Cell is not editable", 2)
            return
        self.mode = "EDIT"
        self._load_edit_buffer()

    def _leave_edit(self):
        self.mode = "VIEW"
        self.edit_buffer = None

    def _commit_buffer(self):
        cursor, col, _ = self._editing_target()
        if cursor is None or col is None:
            return
        try:
            value = coerce_input(self.edit_buffer, col.data_type, col.choice_values)
        except ValueError as e:
            self._set_status(str(e), 2)
            return
        self.table.handle_cell_input(cursor.record_id, cursor.field, value)

    def _flip_toggle(self):
        cursor, _, current = self._editing_target()
        try:
            flag = coerce_bool(current) if current is not None else False
        except ValueError:
            flag = False
        self.table.handle_cell_input(cursor.record_id, cursor.field, not flag)
        self.edit_buffer = to_text(not flag)

    def _cycle_choice(self, step):
        cursor, col, current = self._editing_target()
        options = [None] + [choice.value for choice in col.choice_values]
        try:
            idx = options.index(current)
        except ValueError:
            idx = 0
        value = options[(idx + step) % len(options)]
        self.table.handle_cell_input(cursor.record_id, cursor.field, value)
        self.edit_buffer = to_text(value)

    def _handle_edit_key(self, ch):
        if ch in ENTER_KEYS:
            self.table.handle_cell_key("Enter")
            self._leave_edit()
            return
        if ch == KEY_ESC:
            self.table.handle_cell_key("Escape")
            self._leave_edit()
            return
        if ch in (KEY_TAB, curses.KEY_BTAB):
            self.edit_buffer = None
            moved = self.table.handle_cell_key("Tab", shift=(ch == curses.KEY_BTAB))
            if not moved:
                self._leave_edit()
            return
        if ch in (curses.KEY_UP, curses.KEY_DOWN):
            self.table.handle_cell_blur()
            self._leave_edit()
            if ch == curses.KEY_UP:
                self.grid.move_up()
            else:
                self.grid.move_down()
            return

        cursor, col, _ = self._editing_target()
        if cursor is None or col is None:
            self._leave_edit()
            return

        if col.input_kind == INPUT_TOGGLE:
            if ch == ord(" "):
                self._flip_toggle()
            return
        if col.data_type == "PICKLIST" and col.choice_values:
            if ch in (curses.KEY_LEFT, ord("h")):
                self._cycle_choice(-1)
            elif ch in (curses.KEY_RIGHT, ord("l")):
                self._cycle_choice(1)
            return

        if self.edit_buffer is None:
            self._load_edit_buffer()
        if ch in BACKSPACE_KEYS:
            if not self.edit_buffer:
                return
            self.edit_buffer = self.edit_buffer[:-1]
        elif ch == KEY_CTRL_U:
            self.edit_buffer = ""
        elif 32 <= ch <= 126:
            self.edit_buffer += chr(ch)
        else:
            return
        self._commit_buffer()

    # ---------------- search ----------------

    def _handle_search_key(self, ch):
        if ch in ENTER_KEYS:
            self.mode = "VIEW"
            return
        if ch == KEY_ESC:
            self.search_buffer = self._search_before
            self.table.set_search(self.search_buffer)
            self.mode = "VIEW"
            return
        if ch in BACKSPACE_KEYS:
            self.search_buffer = self.search_buffer[:-1]
        elif ch == KEY_CTRL_U:
            self.search_buffer = ""
        elif 32 <= ch <= 126:
            self.search_buffer += chr(ch)
        else:
            return
        self.table.set_search(self.search_buffer)
        self.grid.curr_row = 0
        self.grid.row_offset = 0

    # ---------------- normal mode ----------------

    def _handle_view_key(self, ch):
        """Returns False when the user asked to quit."""
        if ch == ord("q"):
            return False
        if ch in (curses.KEY_LEFT, ord("h")):
            self.grid.move_left()
        elif ch in (curses.KEY_RIGHT, ord("l")):
            self.grid.move_right()
        elif ch in (curses.KEY_DOWN, ord("j")):
            self.grid.move_down()
        elif ch in (curses.KEY_UP, ord("k")):
            self.grid.move_up()
        elif ch == ord(" "):
            rid, _ = self._current_target()
            if not self.table.toggle_row(rid):
                self._set_status("Rows are not selectable", 2)
        elif ch == ord("a"):
            if not self.table.toggle_all():
                self._set_status("Select all needs Multi Select", 2)
        elif ch == ord("/"):
            if self.grid.view.show_search_bar:
                self._search_before = self.table.state.search
                self.search_buffer = self._search_before
                self.mode = "SEARCH"
            else:
                self._set_status("Search is off", 2)
        elif ch == KEY_CTRL_U:
            self.table.clear_search()
            self.search_buffer = ""
        elif ch == ord("s"):
            col = self.grid.current_column()
            if col is not None:
                self.table.sort_by(col.field)
        elif ch == ord("e") or ch in ENTER_KEYS:
            self._begin_edit()
        elif ch == ord("o"):
            cell = self.grid.current_cell()
            if cell is not None and cell.is_link:
                self.table.open_link(cell.link_record_id)
            else:
                self._set_status("No link in this cell", 2)
        elif ch == ord("u"):
            self.table.undo()
        elif ch == KEY_CTRL_R:
            self.table.redo()
        return True

    # ---------------- UI ----------------

    def _status_context(self):
        state = self.table.state
        view = self.grid.view
        return {
            "status_msg": self.status_msg,
            "status_until": self.status_msg_until,
            "mode": self.mode,
            "file_path": self.file_path,
            "selection_mode": state.selection.mode,
            "selected_count": self.table.selected_count,
            "edited_count": len(state.edits),
            "shown": len(view.rows) if view is not None else 0,
            "total": len(state.records),
            "sort_field": state.sort.field,
            "sort_direction": state.sort.direction,
            "search": state.search,
        }

    def redraw(self):
        self._sync_view()
        self.grid.draw(
            self.layout.table_win,
            edit_buffer=self.edit_buffer if self.mode == "EDIT" else None,
        )

        sw = self.layout.status_win
        sw.erase()
        h, w = sw.getmaxyx()
        try:
            sw.addnstr(0, 0, render_status(self._status_context(), w), w, curses.A_REVERSE)
        except curses.error:
            pass
        sw.refresh()

        pw = self.layout.prompt_win
        pw.erase()
        _, pw_w = pw.getmaxyx()
        if self.mode == "SEARCH":
            prompt = f"/{self.search_buffer}"
            try:
                pw.addnstr(0, 0, prompt, pw_w - 1)
                pw.move(0, min(len(prompt), pw_w - 1))
                curses.curs_set(1)
            except curses.error:
                pass
        else:
            try:
                curses.curs_set(0)
            except curses.error:
                pass
        pw.refresh()

    # ---------------- main loop ----------------

    def run(self):
        self.stdscr.clear()
        self.stdscr.refresh()
        self.redraw()

        while True:
            ch = self.stdscr.getch()

            if ch == KEY_CTRL_C:
                break

            if ch == -1:
                self.redraw()
                continue

            if self.mode == "EDIT":
                self._handle_edit_key(ch)
            elif self.mode == "SEARCH":
                self._handle_search_key(ch)
            elif not self._handle_view_key(ch):
                break

            self.redraw()
            # deferred work (tab focus) runs once the new view is on screen
            if self.table.run_deferred():
                self.redraw()

        return self.table.outputs()
