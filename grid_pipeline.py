import datetime
import unicodedata
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from field_resolver import is_null, record_id, resolve_field
from value_formatter import to_text

ASCENDING = "asc"
DESCENDING = "desc"

# kind ranks for mixed-type columns
_RANK_NUMBER = 0
_RANK_STRING = 1
_RANK_TIME = 2
_RANK_OTHER = 3


@dataclass(frozen=True)
class SortState:
    field: Optional[str] = None
    direction: str = ASCENDING

    @property
    def is_active(self) -> bool:
        return bool(self.field)

    @property
    def descending(self) -> bool:
        return self.direction == DESCENDING

    def toggled(self, field_name):
        if not field_name:
            return self
        if field_name == self.field:
            flipped = ASCENDING if self.descending else DESCENDING
            return SortState(field=field_name, direction=flipped)
        return SortState(field=field_name, direction=ASCENDING)

    def cleared(self):
        return SortState()


def effective_value(record, field_name, ledger=None):
    """Pending edit when there is one, otherwise the stored value."""
    rid = record_id(record)
    if ledger is not None and rid is not None and ledger.has_edit(rid, field_name):
        value = ledger.value_for(rid, field_name)
        return None if is_null(value) else value
    return resolve_field(record, field_name)


def collation_key(text: str):
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text.swapcase())


def _sort_key(value):
    if isinstance(value, (bool, np.bool_)):
        return (_RANK_NUMBER, float(bool(value)))
    if pd.api.types.is_number(value):
        return (_RANK_NUMBER, float(value))
    if isinstance(value, str):
        return (_RANK_STRING, collation_key(value))
    if isinstance(value, (datetime.date, np.datetime64)):
        return (_RANK_TIME, pd.Timestamp(value).value)
    return (_RANK_OTHER, collation_key(to_text(value)))


def filter_records(records, columns, search, ledger=None) -> list:
    rows = list(records)
    if not search:
        return rows
    term = search.lower()
    fields = [col.field_api_name for col in columns]

    def matches(record):
        for name in fields:
            value = effective_value(record, name, ledger)
            if value is not None and term in to_text(value).lower():
                return True
        return False

    return [record for record in rows if matches(record)]


def sort_records(records, sort, ledger=None) -> list:
    """Stable sort on the effective value; nulls go last in either direction."""
    rows = list(records)
    if sort is None or not sort.is_active:
        return rows
    present, missing = [], []
    for record in rows:
        value = effective_value(record, sort.field, ledger)
        if value is None:
            missing.append(record)
        else:
            present.append((_sort_key(value), record))
    present.sort(key=lambda pair: pair[0], reverse=sort.descending)
    return [record for _, record in present] + missing


def derive_view(records, columns, search, sort, ledger=None) -> list:
    return sort_records(filter_records(records, columns, search, ledger), sort, ledger)
