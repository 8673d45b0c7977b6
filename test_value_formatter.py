import numpy as np
import pytest

from column_descriptor import ChoiceValue
from value_formatter import format_value, resolve_choice_label, to_text


STAGES = (
    ChoiceValue("prospect", "Prospecting"),
    ChoiceValue("won", "Closed Won"),
)


@pytest.mark.parametrize(
    "value, data_type, expected",
    [
        (None, "STRING", ""),
        (None, "CURRENCY", ""),
        (True, "BOOLEAN", "Yes"),
        (False, "BOOLEAN", "No"),
        ("true", "BOOLEAN", "Yes"),
        ("no", "BOOLEAN", "No"),
        (1234.5, "CURRENCY", "$1,234.50"),
        (-20, "CURRENCY", "-$20.00"),
        (0, "CURRENCY", "$0.00"),
        (15, "PERCENT", "15%"),
        (0.5, "PERCENT", "0.5%"),
        ("2024-03-05", "DATE", "3/5/2024"),
        ("2024-03-05T14:07:09", "DATETIME", "3/5/2024, 2:07:09 PM"),
        ("2024-03-05T00:00:00", "DATETIME", "3/5/2024, 12:00:00 AM"),
        ("not a date", "DATE", "not a date"),
        ("not a date", "DATETIME", "not a date"),
        (42, "STRING", "42"),
        (3.0, "DOUBLE", "3"),
        (2.25, "DOUBLE", "2.25"),
        (np.int64(7), "INTEGER", "7"),
        ("plain", "TEXTAREA", "plain"),
    ],
)
def test_format_value(value, data_type, expected):
    assert format_value(value, data_type) == expected


@pytest.mark.parametrize(
    "value, data_type",
    [
        (["2024-01-01", "2024-02-01"], "DATE"),
        (["2024-01-01", "2024-02-01"], "DATETIME"),
        (("2024-01-01",), "DATE"),
        ({"start": "2024-01-01"}, "DATETIME"),
        (np.array(["2024-01-01", "2024-02-01"]), "DATE"),
    ],
)
def test_non_scalar_dates_fall_back_to_plain_text(value, data_type):
    assert format_value(value, data_type) == str(value)


def test_epoch_millis_are_read_as_dates():
    # 2024-01-02T00:00:00Z
    assert format_value(1704153600000, "DATE") == "1/2/2024"


def test_picklist_uses_choice_label_or_raw_value():
    assert format_value("won", "PICKLIST", STAGES) == "Closed Won"
    assert format_value("lost", "PICKLIST", STAGES) == "lost"
    assert format_value("won", "PICKLIST") == "won"


def test_multipicklist_resolves_each_token():
    assert format_value("prospect;won", "MULTIPICKLIST", STAGES) == "Prospecting; Closed Won"
    assert format_value("won; other", "MULTIPICKLIST", STAGES) == "Closed Won; other"


def test_format_value_is_repeatable():
    first = format_value("2024-03-05T14:07:09", "DATETIME")
    assert all(format_value("2024-03-05T14:07:09", "DATETIME") == first for _ in range(3))


def test_to_text_and_choice_label():
    assert to_text(None) == ""
    assert to_text(True) == "True"
    assert to_text(np.float64(4.0)) == "4"
    assert resolve_choice_label("prospect", STAGES) == "Prospecting"
