import pandas as pd

NUMERIC_TYPES = {"DOUBLE", "INTEGER", "CURRENCY", "PERCENT"}
CHOICE_TYPES = {"PICKLIST", "MULTIPICKLIST"}

_TRUE_WORDS = {"1", "true", "t", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "f", "no", "n", "off"}


def coerce_bool(value):
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(f"Cannot coerce '{value}' to boolean")
    return bool(value)


def _coerce_number(text, data_type):
    if data_type == "INTEGER":
        try:
            return int(text)
        except ValueError:
            pass
    number = float(text)
    if number.is_integer() and "." not in text and "e" not in text.lower():
        return int(number)
    return number


def _choice_value(text, choice_values):
    for choice in choice_values or ():
        if text == choice.value:
            return choice.value
    for choice in choice_values or ():
        if text == choice.label:
            return choice.value
    return text


def coerce_input(text, data_type, choice_values=()):
    """Turn editor text into the typed value stored in the edit ledger."""
    text = "" if text is None else str(text)
    stripped = text.strip()
    data_type = (data_type or "").upper()

    if data_type in NUMERIC_TYPES:
        if stripped == "":
            return None
        try:
            return _coerce_number(stripped, data_type)
        except ValueError:
            raise ValueError(f"Cannot coerce '{text}' to a number") from None

    if data_type == "BOOLEAN":
        if stripped == "":
            return None
        return coerce_bool(stripped)

    if data_type in {"DATE", "DATETIME"}:
        if stripped == "":
            return None
        try:
            stamp = pd.to_datetime(stripped, errors="raise")
        except (ValueError, TypeError, OverflowError):
            raise ValueError(f"Cannot coerce '{text}' to a date") from None
        if pd.isna(stamp):
            raise ValueError(f"Cannot coerce '{text}' to a date")
        if data_type == "DATE":
            return stamp.date().isoformat()
        return stamp.isoformat()

    if data_type == "MULTIPICKLIST":
        tokens = [t.strip() for t in text.split(";") if t.strip()]
        return ";".join(_choice_value(t, choice_values) for t in tokens)

    if data_type == "PICKLIST":
        if stripped == "":
            return None
        return _choice_value(stripped, choice_values)

    return text
