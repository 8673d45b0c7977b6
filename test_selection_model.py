import random
import unittest

import pytest

from selection_model import (
    MULTI_SELECT,
    SINGLE_SELECT,
    VIEW_ONLY,
    SelectionState,
    parse_selection_mode,
)


RECORDS = [{"Id": "1"}, {"Id": "2"}, {"Id": "3"}, {"Id": "4"}]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("View Only", VIEW_ONLY),
        ("single select", SINGLE_SELECT),
        ("Multi-Select", MULTI_SELECT),
        ("multi", MULTI_SELECT),
        ("", VIEW_ONLY),
        (None, VIEW_ONLY),
        ("everything", VIEW_ONLY),
    ],
)
def test_parse_selection_mode(text, expected):
    assert parse_selection_mode(text) == expected


class SelectionStateTests(unittest.TestCase):
    def test_view_only_toggle_is_noop(self):
        state = SelectionState(VIEW_ONLY)
        self.assertIs(state.toggle("1"), state)
        self.assertEqual(len(state.toggle("1")), 0)

    def test_single_select_replaces_and_clears(self):
        state = SelectionState(SINGLE_SELECT).toggle("1")
        self.assertEqual(state.ids, frozenset({"1"}))
        state = state.toggle("2")
        self.assertEqual(state.ids, frozenset({"2"}))
        state = state.toggle("2")
        self.assertEqual(state.ids, frozenset())

    def test_multi_select_toggle_twice_returns_to_empty(self):
        state = SelectionState(MULTI_SELECT).toggle("1").toggle("1")
        self.assertEqual(len(state), 0)
        self.assertEqual(state.selected_records(RECORDS), [])

    def test_toggle_returns_new_state(self):
        before = SelectionState(MULTI_SELECT)
        after = before.toggle("1")
        self.assertEqual(len(before), 0)
        self.assertIn("1", after)

    def test_select_all_adds_visible_only(self):
        state = SelectionState(MULTI_SELECT).toggle("4")
        state = state.select_all(["1", "2"])
        self.assertEqual(state.ids, frozenset({"1", "2", "4"}))

    def test_select_all_when_all_visible_selected_clears_everything(self):
        state = SelectionState(MULTI_SELECT, frozenset({"1", "2", "4"}))
        self.assertTrue(state.is_all_selected(["1", "2"]))
        self.assertEqual(len(state.select_all(["1", "2"])), 0)

    def test_select_all_needs_multi_mode(self):
        state = SelectionState(SINGLE_SELECT)
        self.assertIs(state.select_all(["1", "2"]), state)
        self.assertFalse(state.is_all_selected(["1"]))

    def test_is_all_selected_false_for_empty_view(self):
        self.assertFalse(SelectionState(MULTI_SELECT, frozenset({"1"})).is_all_selected([]))

    def test_selected_records_follow_raw_order(self):
        state = SelectionState(MULTI_SELECT).toggle("3").toggle("1")
        self.assertEqual([r["Id"] for r in state.selected_records(RECORDS)], ["1", "3"])

    def test_stale_ids_are_filtered_at_output_and_pruned_on_request(self):
        state = SelectionState(MULTI_SELECT, frozenset({"1", "9"}))
        self.assertEqual([r["Id"] for r in state.selected_records(RECORDS)], ["1"])
        self.assertIn("9", state)
        self.assertEqual(state.prune(["1", "2"]).ids, frozenset({"1"}))


@pytest.mark.parametrize("mode, limit", [(SINGLE_SELECT, 1), (VIEW_ONLY, 0)])
def test_cardinality_under_random_toggles(mode, limit):
    rng = random.Random(7)
    state = SelectionState(mode)
    for _ in range(200):
        state = state.toggle(rng.choice(["1", "2", "3", "4"]))
        assert len(state) <= limit


if __name__ == "__main__":
    unittest.main()
