import logging
from dataclasses import dataclass, field

from field_resolver import record_id

logger = logging.getLogger(__name__)

VIEW_ONLY = "View Only"
SINGLE_SELECT = "Single Select"
MULTI_SELECT = "Multi Select"

_MODE_ALIASES = {
    "view only": VIEW_ONLY,
    "view-only": VIEW_ONLY,
    "view": VIEW_ONLY,
    "none": VIEW_ONLY,
    "single select": SINGLE_SELECT,
    "single-select": SINGLE_SELECT,
    "single": SINGLE_SELECT,
    "multi select": MULTI_SELECT,
    "multi-select": MULTI_SELECT,
    "multi": MULTI_SELECT,
    "multiple": MULTI_SELECT,
}


def parse_selection_mode(text) -> str:
    if text is None or str(text).strip() == "":
        return VIEW_ONLY
    mode = _MODE_ALIASES.get(str(text).strip().lower())
    if mode is None:
        logger.warning("Unknown selection mode %r, falling back to %s", text, VIEW_ONLY)
        return VIEW_ONLY
    return mode


@dataclass(frozen=True)
class SelectionState:
    """Selected record ids under one selection mode. Every change returns a new state."""

    mode: str = VIEW_ONLY
    ids: frozenset = field(default_factory=frozenset)

    @property
    def is_selectable(self) -> bool:
        return self.mode in (SINGLE_SELECT, MULTI_SELECT)

    @property
    def is_multi(self) -> bool:
        return self.mode == MULTI_SELECT

    def __contains__(self, rid) -> bool:
        return rid in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    def _with(self, ids):
        return SelectionState(mode=self.mode, ids=frozenset(ids))

    def toggle(self, rid):
        if not self.is_selectable or rid is None:
            return self
        if self.mode == SINGLE_SELECT:
            if rid in self.ids:
                return self._with(())
            return self._with((rid,))
        return self._with(self.ids ^ {rid})

    def is_all_selected(self, visible_ids) -> bool:
        if not self.is_multi:
            return False
        visible = [rid for rid in visible_ids if rid is not None]
        if not visible:
            return False
        return all(rid in self.ids for rid in visible)

    def select_all(self, visible_ids):
        if not self.is_multi:
            return self
        if self.is_all_selected(visible_ids):
            return self.clear()
        return self._with(self.ids | {rid for rid in visible_ids if rid is not None})

    def clear(self):
        return self._with(())

    def prune(self, known_ids):
        known = set(known_ids)
        return self._with(rid for rid in self.ids if rid in known)

    def selected_records(self, records) -> list:
        """Selected records in raw-record order."""
        if not self.ids:
            return []
        return [r for r in records if record_id(r) is not None and record_id(r) in self.ids]
