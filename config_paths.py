import json
import os

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
CONFIG_DIR = os.path.join(CONFIG_HOME, "flowtable")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")
LOG_PATH = os.path.join(CONFIG_DIR, "flowtable.log")

# default settings
SELECTION_MODE_DEFAULT = "View Only"
ENABLE_INLINE_EDIT_DEFAULT = False
SHOW_SEARCH_DEFAULT = True
VISIBLE_ROWS_DEFAULT = 10
SHOW_ROW_NUMBERS_DEFAULT = False

_BOOL_KEYS = ("enable_inline_edit", "show_search", "show_row_numbers")


def ensure_config_dirs():
    try:
        os.makedirs(CONFIG_DIR, exist_ok=True)
    except OSError:
        pass


def load_config():
    cfg = {
        "selection_mode": SELECTION_MODE_DEFAULT,
        "enable_inline_edit": ENABLE_INLINE_EDIT_DEFAULT,
        "show_search": SHOW_SEARCH_DEFAULT,
        "visible_rows": VISIBLE_ROWS_DEFAULT,
        "show_row_numbers": SHOW_ROW_NUMBERS_DEFAULT,
    }

    if not os.path.exists(CONFIG_JSON):
        return cfg

    try:
        with open(CONFIG_JSON, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return cfg
    if not isinstance(data, dict):
        return cfg

    table = data.get("table") if isinstance(data.get("table"), dict) else data

    mode = table.get("selection_mode")
    if isinstance(mode, str) and mode.strip():
        cfg["selection_mode"] = mode.strip()
    for key in _BOOL_KEYS:
        if isinstance(table.get(key), bool):
            cfg[key] = table[key]
    rows = table.get("visible_rows")
    if isinstance(rows, int) and not isinstance(rows, bool) and rows > 0:
        cfg["visible_rows"] = rows

    return cfg
