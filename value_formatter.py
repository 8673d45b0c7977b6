import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

from cell_coercion import coerce_bool
from field_resolver import is_null

logger = logging.getLogger(__name__)


def to_text(value) -> str:
    """Plain string form used for display fallbacks and search matching."""
    if is_null(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return str(bool(value))
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, np.generic):
        return str(value.item())
    return str(value)


def _format_boolean(value):
    try:
        truthy = coerce_bool(value)
    except ValueError:
        truthy = bool(value)
    return "Yes" if truthy else "No"


def _format_currency(value):
    if isinstance(value, (bool, np.bool_)):
        return to_text(value)
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return to_text(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _parse_timestamp(value):
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (Mapping, list, tuple, set, np.ndarray)):
        # to_datetime would return an index, not a single stamp
        return None
    try:
        if isinstance(value, (int, float, np.integer, np.floating)):
            stamp = pd.to_datetime(value, unit="ms")
        else:
            stamp = pd.to_datetime(value, errors="raise")
    except (ValueError, TypeError, OverflowError):
        logger.debug("Unparsable date value %r", value)
        return None
    if not isinstance(stamp, pd.Timestamp) or pd.isna(stamp):
        return None
    return stamp


def _format_date(value):
    stamp = _parse_timestamp(value)
    if stamp is None:
        return to_text(value)
    return f"{stamp.month}/{stamp.day}/{stamp.year}"


def _format_datetime(value):
    stamp = _parse_timestamp(value)
    if stamp is None:
        return to_text(value)
    hour = stamp.hour % 12 or 12
    meridiem = "AM" if stamp.hour < 12 else "PM"
    return (
        f"{stamp.month}/{stamp.day}/{stamp.year}, "
        f"{hour}:{stamp.minute:02d}:{stamp.second:02d} {meridiem}"
    )


def resolve_choice_label(value, choice_values):
    for choice in choice_values or ():
        if choice.value == value:
            return choice.label
    return to_text(value)


def format_value(value, data_type, choice_values=()) -> str:
    if is_null(value):
        return ""
    data_type = (data_type or "").upper()
    if data_type == "BOOLEAN":
        return _format_boolean(value)
    if data_type == "CURRENCY":
        return _format_currency(value)
    if data_type == "PERCENT":
        return f"{to_text(value)}%"
    if data_type == "DATE":
        return _format_date(value)
    if data_type == "DATETIME":
        return _format_datetime(value)
    if data_type == "PICKLIST":
        return resolve_choice_label(value, choice_values)
    if data_type == "MULTIPICKLIST":
        if not isinstance(value, str):
            return resolve_choice_label(value, choice_values)
        tokens = [token.strip() for token in value.split(";")]
        return "; ".join(resolve_choice_label(t, choice_values) for t in tokens)
    return to_text(value)
