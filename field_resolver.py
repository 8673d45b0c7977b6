from collections.abc import Mapping

import numpy as np
import pandas as pd

ID_FIELD = "Id"


def is_null(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (Mapping, list, tuple, set, np.ndarray)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def resolve_field(record, path):
    """Walk a dotted path through nested mappings; any gap yields None."""
    if not path or not isinstance(record, Mapping):
        return None
    value = record
    for part in path.split("."):
        if is_null(value) or not isinstance(value, Mapping):
            return None
        value = value.get(part)
    if is_null(value):
        return None
    return value


def record_id(record):
    if not isinstance(record, Mapping):
        return None
    rid = record.get(ID_FIELD)
    if is_null(rid) or rid == "":
        return None
    return rid


def find_record(records, rid):
    if rid is None:
        return None
    for record in records:
        if record_id(record) == rid:
            return record
    return None
