import curses
import unittest
from dataclasses import replace

from column_descriptor import build_columns
from grid_pane import GridPane
from grid_view import project
from table_config import TableConfig
from table_state import EditingCursor, initial_state


class DummyWin:
    def __init__(self, h=24, w=120):
        self._h = h
        self._w = w
        self.lines = {}

    def getmaxyx(self):
        return self._h, self._w

    def erase(self):
        self.lines = {}

    def bkgd(self, *args):
        pass

    def hline(self, *args):
        pass

    def refresh(self):
        pass

    def addnstr(self, y, x, text, n, attr=0):
        row = self.lines.get(y, "").ljust(x)
        text = text[:n]
        self.lines[y] = row[:x] + text + row[x + len(text):]


def _view(n_cols=3, n_rows=3, **config_kwargs):
    fields = tuple(f"c{i}" for i in range(n_cols))
    config = TableConfig(field_names=fields, **config_kwargs)
    records = [
        dict({"Id": str(r)}, **{f: f"r{r}{f}" for f in fields}) for r in range(n_rows)
    ]
    metadata = [{"fieldApiName": f, "label": f} for f in fields]
    state = initial_state(config, records)
    state = replace(state, columns=build_columns(metadata, config), metadata_loaded=True)
    return state


def _visible_count(grid: GridPane, win: DummyWin, offset: int | None = None) -> int:
    """Replicate adjust_col_viewport's width math using header widths only."""
    _, w = win.getmaxyx()
    avail_w = max(20, w - grid.prefix_width())

    header_widths = [min(grid.MAX_COL_WIDTH, len(col.label) + 2) for col in grid.view.columns]

    visible_count = 0
    used = 0
    col_offset = grid.col_offset if offset is None else offset
    for cw in header_widths[col_offset:]:
        if used + cw + 1 > avail_w:
            break
        used += cw + 1
        visible_count += 1

    return max(1, visible_count)


class GridPaneAdjustViewportTests(unittest.TestCase):
    def test_adjust_col_viewport_avoids_full_width_scans(self):
        grid = GridPane(project(_view(n_cols=50, n_rows=1)))
        win = DummyWin(24, 120)

        def fail_on_width(col_idx):
            raise AssertionError("get_col_width should not be called during adjust_col_viewport")

        grid.get_col_width = fail_on_width
        grid.curr_col = grid.col_count - 1

        # Should not raise by calling get_col_width
        grid.adjust_col_viewport(win)

    def test_adjust_col_viewport_shifts_offset_using_header_estimates(self):
        grid = GridPane(project(_view(n_cols=50, n_rows=1)))
        win = DummyWin(24, 80)

        grid.curr_col = grid.col_count - 1

        initial_visible = _visible_count(grid, win, offset=grid.col_offset)
        expected_offset = grid.curr_col - initial_visible + 1
        expected_offset = max(0, min(expected_offset, grid.col_count - initial_visible))

        grid.adjust_col_viewport(win)

        self.assertEqual(grid.col_offset, expected_offset)
        self.assertLessEqual(grid.col_offset, grid.curr_col)


class GridPaneDrawTests(unittest.TestCase):
    def setUp(self):
        self._color_pair = curses.color_pair
        curses.color_pair = lambda n: 0

    def tearDown(self):
        curses.color_pair = self._color_pair

    def _text(self, win):
        return "\n".join(win.lines[y] for y in sorted(win.lines))

    def test_draw_headers_markers_and_row_numbers(self):
        state = _view(selection_mode="Multi Select", show_row_numbers=True, header_text="Deals")
        state = replace(state, selection=state.selection.toggle("1"))
        grid = GridPane(project(state))
        win = DummyWin(12, 100)
        grid.draw(win)
        text = self._text(win)
        self.assertTrue(win.lines[0].startswith("Deals"))
        self.assertIn("c0", text)
        self.assertIn("  2 [x] r1c0", text)
        self.assertIn("  1 [ ] r0c0", text)

    def test_draw_respects_visible_rows_and_scrolls(self):
        grid = GridPane(project(_view(n_rows=20, visible_rows=5)))
        win = DummyWin(30, 100)
        grid.curr_row = 12
        grid.draw(win)
        text = self._text(win)
        self.assertIn("r12c0", text)
        self.assertIn("r8c0", text)
        self.assertNotIn("r7c0", text)
        self.assertNotIn("r13c0", text)

    def test_draw_shows_edit_buffer_in_editing_cell(self):
        state = _view(enable_inline_edit=True)
        state = replace(state, editing=EditingCursor("1", "c1"))
        grid = GridPane(project(state))
        win = DummyWin(12, 100)
        grid.draw(win, edit_buffer="typed")
        self.assertIn("typed", self._text(win))
        self.assertNotIn("r1c1", self._text(win))

    def test_draw_sort_arrow_and_metadata_error(self):
        state = _view()
        grid = GridPane(project(replace(state, sort=state.sort.toggled("c0").toggled("c0"))))
        win = DummyWin(12, 100)
        grid.draw(win)
        self.assertIn("c0 ▼", self._text(win))

        grid.set_view(project(replace(state, columns=(), metadata_error="No access")))
        grid.draw(win)
        self.assertIn("Error loading columns: No access", self._text(win))

    def test_select_cell_moves_cursor(self):
        grid = GridPane(project(_view()))
        self.assertTrue(grid.select_cell("2", "c1"))
        self.assertEqual((grid.curr_row, grid.curr_col), (2, 1))
        self.assertFalse(grid.select_cell("9", "c1"))
        self.assertEqual(grid.current_cell().display_value, "r2c1")


if __name__ == "__main__":
    unittest.main()
