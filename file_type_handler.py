import json
import os

import numpy as np
import pandas as pd

from field_resolver import ID_FIELD

SUPPORTED = {".json", ".csv", ".parquet", ".xlsx"}


def _nest(flat: dict) -> dict:
    """Turn dotted keys ("Account.Name") into nested objects."""
    record: dict = {}
    groups: dict = {}
    for key, value in flat.items():
        key = str(key)
        if "." in key:
            head, rest = key.split(".", 1)
            groups.setdefault(head, {})[rest] = value
        else:
            record[key] = value
    for head, members in groups.items():
        nested = _nest(members)
        if all(v is None for v in nested.values()):
            record.setdefault(head, None)
        else:
            record[head] = nested
    return record


def frame_to_records(df: pd.DataFrame) -> list:
    if df is None or df.empty:
        return []
    df = df.astype(object).where(pd.notna(df), None)
    if ID_FIELD in df.columns:
        df[ID_FIELD] = df[ID_FIELD].map(_id_text)
    records = []
    for row in df.to_dict(orient="records"):
        records.append(_nest({k: _native(v) for k, v in row.items()}))
    return records


def _id_text(value):
    if value is None:
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _native(value):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


class RecordFileHandler:
    def __init__(self, path: str):
        self.path = path
        _, ext = os.path.splitext(path)
        self.ext = ext.lower()

        if self.ext not in SUPPORTED:
            raise ValueError("Unsupported file type (use .json, .csv, .parquet, or .xlsx)")

    def load(self) -> list:
        if not os.path.exists(self.path) or os.path.getsize(self.path) == 0:
            return []

        if self.ext == ".json":
            return self._load_json()
        if self.ext == ".csv":
            try:
                header = pd.read_csv(self.path, nrows=0)
            except pd.errors.EmptyDataError:
                return []
            dtype = {ID_FIELD: str} if ID_FIELD in header.columns else None
            return frame_to_records(pd.read_csv(self.path, dtype=dtype))
        if self.ext == ".parquet":
            self._ensure_parquet_engine()
            return frame_to_records(pd.read_parquet(self.path))
        self._ensure_excel_engine()
        return frame_to_records(pd.read_excel(self.path))

    def _load_json(self) -> list:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("records", [])
        if not isinstance(data, list):
            raise ValueError(f"{self.path}: expected a list of records")
        return [r for r in data if isinstance(r, dict)]

    def save(self, records) -> None:
        records = list(records or [])
        if self.ext == ".json":
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, default=str)
                f.write("\n")
        elif self.ext == ".csv":
            pd.json_normalize(records).to_csv(self.path, index=False)
        elif self.ext == ".parquet":
            self._ensure_parquet_engine()
            pd.json_normalize(records).to_parquet(self.path)
        else:
            self._ensure_excel_engine()
            pd.json_normalize(records).to_excel(self.path, index=False)

    def _ensure_parquet_engine(self):
        try:
            import pyarrow  # noqa: F401

            return
        except ImportError:
            pass
        raise RuntimeError("Parquet support requires pyarrow. Install via: pip install pyarrow")

    def _ensure_excel_engine(self):
        try:
            import openpyxl  # noqa: F401

            return
        except ImportError:
            pass
        raise RuntimeError("XLSX support requires openpyxl. Install via: pip install openpyxl")
