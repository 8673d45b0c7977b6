import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from field_resolver import find_record, is_null

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    return is_null(value) or (isinstance(value, str) and value == "")


def _as_number(value):
    if isinstance(value, (bool, np.bool_)):
        return float(bool(value))
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _is_numeric(value) -> bool:
    return pd.api.types.is_number(value) or pd.api.types.is_bool(value)


def values_equal(a, b) -> bool:
    """Equality used to decide whether an edit differs from the stored value.

    Null and "" are interchangeable. Two strings compare exactly. When either
    side is a number or boolean both sides are read as numbers, so "42" equals
    42 and " 7 " equals 7.0, while "abc" never equals a number.
    """
    a_blank, b_blank = _is_blank(a), _is_blank(b)
    if a_blank and b_blank:
        return True
    if a_blank or b_blank:
        return False
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if _is_numeric(a) or _is_numeric(b):
        na, nb = _as_number(a), _as_number(b)
        if na is None or nb is None:
            return False
        return na == nb
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class EditLedger:
    """Pending per-record, per-field edits. A record entry always holds at least one field."""

    entries: dict = field(default_factory=dict)

    def __contains__(self, rid) -> bool:
        return rid in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def pending(self, rid) -> dict:
        return dict(self.entries.get(rid, {}))

    def has_edit(self, rid, field_name) -> bool:
        return field_name in self.entries.get(rid, {})

    def value_for(self, rid, field_name, default=None):
        return self.entries.get(rid, {}).get(field_name, default)

    def set_edit(self, rid, field_name, new_value, original_value):
        entries = dict(self.entries)
        if values_equal(new_value, original_value):
            if rid not in entries or field_name not in entries[rid]:
                return self
            edits = dict(entries[rid])
            del edits[field_name]
            if edits:
                entries[rid] = edits
            else:
                del entries[rid]
            logger.debug("Edit on %s.%s matches original, dropped", rid, field_name)
        else:
            edits = dict(entries.get(rid, {}))
            edits[field_name] = new_value
            entries[rid] = edits
        return EditLedger(entries)

    def discard(self, rid, field_name=None):
        if rid not in self.entries:
            return self
        entries = dict(self.entries)
        if field_name is None:
            del entries[rid]
            return EditLedger(entries)
        edits = dict(entries[rid])
        edits.pop(field_name, None)
        if edits:
            entries[rid] = edits
        else:
            del entries[rid]
        return EditLedger(entries)

    def prune(self, known_ids):
        known = set(known_ids)
        return EditLedger({rid: e for rid, e in self.entries.items() if rid in known})

    def edited_records(self, records, selected_ids=None) -> list:
        """Originals merged with their pending edits, in first-edit order.

        When ``selected_ids`` is given only selected records are returned.
        """
        edited = []
        for rid, edits in self.entries.items():
            if selected_ids is not None and rid not in selected_ids:
                continue
            original = find_record(records, rid)
            if original is None:
                continue
            edited.append({**original, **edits})
        return edited
