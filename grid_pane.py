# ~/Apps/flowtable/grid_pane.py
import curses


class GridPane:
    PAIR_CELL_TEXT = 1
    PAIR_HEADER = 2
    PAIR_ERROR = 3
    MAX_COL_WIDTH = 40
    SORT_ARROWS = {"asc": " ▲", "desc": " ▼"}

    def __init__(self, view=None):
        self.view = view
        try:
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(self.PAIR_CELL_TEXT, curses.COLOR_WHITE, -1)
            curses.init_pair(self.PAIR_HEADER, curses.COLOR_CYAN, -1)
            curses.init_pair(self.PAIR_ERROR, curses.COLOR_RED, -1)
        except curses.error:
            pass

        self.curr_row = 0
        self.curr_col = 0
        self.row_offset = 0
        self.col_offset = 0

        self.rendered_col_widths = {}

    # ---------- view binding ----------
    def set_view(self, view):
        self.view = view
        self.curr_row = min(max(0, self.curr_row), max(0, self.row_count - 1))
        self.curr_col = min(max(0, self.curr_col), max(0, self.col_count - 1))

    @property
    def row_count(self) -> int:
        return len(self.view.rows) if self.view is not None else 0

    @property
    def col_count(self) -> int:
        return len(self.view.columns) if self.view is not None else 0

    def current_row(self):
        if self.row_count == 0:
            return None
        return self.view.rows[self.curr_row]

    def current_column(self):
        if self.col_count == 0:
            return None
        return self.view.columns[self.curr_col]

    def current_cell(self):
        row = self.current_row()
        if row is None or not row.cells:
            return None
        return row.cells[self.curr_col]

    def select_cell(self, rid, field_name) -> bool:
        if self.view is None:
            return False
        r = self.view.row_index(rid)
        if r < 0:
            return False
        for c, col in enumerate(self.view.columns):
            if col.field == field_name:
                self.curr_row, self.curr_col = r, c
                return True
        return False

    # ---------- widths ----------
    def _header_text(self, col_idx):
        col = self.view.columns[col_idx]
        arrow = self.SORT_ARROWS.get(col.sort_direction, "") if col.is_sorted else ""
        return f"{col.label}{arrow}"

    def get_col_width(self, col_idx):
        if self.view is None or col_idx < 0 or col_idx >= self.col_count:
            return self.MAX_COL_WIDTH
        max_len = len(self._header_text(col_idx))
        for row in self.view.rows:
            max_len = max(max_len, len(row.cells[col_idx].display_value))
        return min(self.MAX_COL_WIDTH, max_len + 2)

    def get_rendered_col_width(self, col_idx):
        return self.rendered_col_widths.get(col_idx, self.get_col_width(col_idx))

    def prefix_width(self) -> int:
        width = 0
        if self.view is None:
            return width
        if self.view.show_row_numbers:
            width += max(3, len(str(self.row_count)) + 1) + 1
        if self.view.is_selectable:
            width += 4
        return width

    def adjust_col_viewport(self, win=None):
        """Force column viewport adjustment so curr_col is visible.
        Call this after big cursor jumps (especially to last/first column)."""
        if self.col_count == 0:
            self.col_offset = 0
            return

        if win is not None:
            h, w = win.getmaxyx()
        else:
            h, w = 24, 120  # reasonable fallback

        avail_w = max(20, w - self.prefix_width())

        # header widths only; cell scans happen at draw time
        header_widths = [
            min(self.MAX_COL_WIDTH, len(self._header_text(c)) + 2)
            for c in range(self.col_count)
        ]

        visible_count = 0
        used = 0
        for cw in header_widths[self.col_offset :]:
            if used + cw + 1 > avail_w:
                break
            used += cw + 1
            visible_count += 1

        visible_count = max(1, visible_count)

        if self.curr_col < self.col_offset:
            self.col_offset = self.curr_col
        elif self.curr_col >= self.col_offset + visible_count:
            self.col_offset = self.curr_col - visible_count + 1

        self.col_offset = max(0, self.col_offset)
        max_possible_offset = max(0, self.col_count - visible_count)
        self.col_offset = min(self.col_offset, max_possible_offset)

    # ---------- navigation ----------
    def move_left(self):
        self.curr_col = max(0, self.curr_col - 1)

    def move_right(self):
        self.curr_col = min(max(0, self.col_count - 1), self.curr_col + 1)

    def move_down(self):
        self.curr_row = min(max(0, self.row_count - 1), self.curr_row + 1)

    def move_up(self):
        self.curr_row = max(0, self.curr_row - 1)

    def visible_row_range(self, budget):
        """Rows [start, end) that fit, scrolled so curr_row is on screen."""
        budget = max(1, budget)
        if self.view is not None and self.view.visible_rows:
            budget = min(budget, max(1, self.view.visible_rows))
        if self.curr_row < self.row_offset:
            self.row_offset = self.curr_row
        elif self.curr_row >= self.row_offset + budget:
            self.row_offset = self.curr_row - budget + 1
        self.row_offset = max(0, min(self.row_offset, max(0, self.row_count - budget)))
        return self.row_offset, min(self.row_count, self.row_offset + budget)

    # ---------- rendering ----------
    def _put(self, win, y, x, text, width, attr=0):
        if width <= 0:
            return
        try:
            win.addnstr(y, x, text, width, attr)
        except curses.error:
            pass

    def _prefix(self, row):
        text = ""
        if self.view.show_row_numbers:
            num_w = max(3, len(str(self.row_count)) + 1)
            text += str(row.row_number).rjust(num_w) + " "
        if self.view.is_selectable:
            if self.view.is_multi_select:
                text += "[x] " if row.is_selected else "[ ] "
            else:
                text += "(*) " if row.is_selected else "( ) "
        return text

    def draw(self, win, edit_buffer=None):
        win.erase()
        try:
            win.bkgd(" ", curses.color_pair(self.PAIR_CELL_TEXT))
        except curses.error:
            pass
        h, w = win.getmaxyx()
        y = 0
        view = self.view

        if view is None:
            win.refresh()
            return

        if view.header_text:
            self._put(win, y, 0, view.header_text, w, curses.A_BOLD)
            y += 1

        if view.metadata_error:
            attr = curses.color_pair(self.PAIR_ERROR) | curses.A_BOLD
            self._put(win, y, 0, f"Error loading columns: {view.metadata_error}", w, attr)
            win.refresh()
            return

        if view.show_search_bar:
            bar = f"Search: {view.search_term}"
            if view.result_count_text:
                bar += f"   {view.result_count_text}"
            self._put(win, y, 0, bar, w)
            y += 1

        if not view.columns:
            self._put(win, y, 0, "No columns available", w, curses.A_DIM)
            win.refresh()
            return

        widths = [self.get_col_width(c) for c in range(self.col_count)]
        prefix_w = self.prefix_width()
        avail_w = w - prefix_w

        max_cols = 0
        used = 0
        for cw in widths[self.col_offset :]:
            if used + cw + 1 > avail_w:
                break
            used += cw + 1
            max_cols += 1
        max_cols = max(1, max_cols)

        if self.curr_col < self.col_offset:
            self.col_offset = self.curr_col
        elif self.curr_col >= self.col_offset + max_cols:
            self.col_offset = self.curr_col - max_cols + 1
        self.col_offset = max(0, min(self.col_offset, self.col_count - 1))

        visible_cols = tuple(
            range(self.col_offset, min(self.col_count, self.col_offset + max_cols))
        )
        self.rendered_col_widths = {}

        # header
        if view.is_multi_select:
            mark = "[x] " if view.is_all_selected else "[ ] "
            self._put(win, y, prefix_w - 4, mark, 4, curses.A_BOLD)
        x = prefix_w
        header_attr = curses.color_pair(self.PAIR_HEADER) | curses.A_BOLD
        for c in visible_cols:
            eff_cw = min(widths[c], max(1, w - x - 1))
            self.rendered_col_widths[c] = eff_cw
            self._put(win, y, x, self._header_text(c)[:eff_cw].ljust(eff_cw), eff_cw, header_attr)
            x += eff_cw + 1
        y += 1

        if not view.rows:
            empty = "No matching records" if view.search_term else "No records"
            self._put(win, y, prefix_w, empty, w - prefix_w, curses.A_DIM)
            win.refresh()
            return

        start, end = self.visible_row_range(h - y - 1)
        for r in range(start, end):
            if y >= h - 1:
                break
            row = view.rows[r]
            self._put(win, y, 0, self._prefix(row), prefix_w)
            x = prefix_w
            for c in visible_cols:
                cell = row.cells[c]
                eff_cw = self.rendered_col_widths.get(c, widths[c])
                text = cell.display_value
                if cell.is_editing and edit_buffer is not None:
                    text = edit_buffer

                attr = curses.color_pair(self.PAIR_CELL_TEXT)
                if cell.is_edited:
                    attr |= curses.A_BOLD
                if cell.is_link:
                    attr |= curses.A_UNDERLINE
                if r == self.curr_row and c == self.curr_col:
                    attr |= curses.A_REVERSE
                elif row.is_selected:
                    attr |= curses.A_STANDOUT

                if cell.is_editing and len(text) >= eff_cw:
                    text = text[-(eff_cw - 1):] if eff_cw > 1 else ""
                self._put(win, y, x, text[:eff_cw].ljust(eff_cw), eff_cw, attr)
                x += eff_cw + 1
            y += 1

        # footer line
        try:
            win.hline(h - 1, 0, " ", w)
        except curses.error:
            pass

        win.refresh()
