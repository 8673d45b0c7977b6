import json
import logging

import pandas as pd

from field_resolver import ID_FIELD

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred"


class MetadataError(Exception):
    """Raised by providers when column metadata cannot be resolved."""


def normalize_error(error) -> str:
    if isinstance(error, str):
        return error or UNKNOWN_ERROR
    body = getattr(error, "body", None)
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    message = getattr(error, "message", None)
    if message:
        return str(message)
    if isinstance(error, BaseException) and str(error):
        return str(error)
    return UNKNOWN_ERROR


class MetadataProvider:
    def get_column_metadata(self, object_api_name, field_names) -> list:
        raise NotImplementedError


def _choices(raw_field):
    return [
        {"value": c.get("value"), "label": c.get("label") or c.get("value")}
        for c in raw_field.get("picklistValues") or []
        if isinstance(c, dict)
    ]


class CatalogMetadataProvider(MetadataProvider):
    """Resolves field paths against an object catalog.

    Catalog shape::

        {"objects": {"Opportunity": {"fields": [
            {"apiName": "Amount", "label": "Amount", "dataType": "CURRENCY",
             "isEditable": true},
            {"apiName": "AccountId", "label": "Account", "dataType": "REFERENCE",
             "isRelationship": true, "relationshipName": "Account",
             "relatedObjectName": "Account"}
        ]}}}
    """

    def __init__(self, catalog):
        self.objects = (catalog or {}).get("objects") or {}

    def _fields(self, object_api_name) -> dict:
        obj = self.objects.get(object_api_name)
        if obj is None:
            raise MetadataError(f"Unknown object: {object_api_name}")
        return {
            f["apiName"].lower(): f
            for f in obj.get("fields") or []
            if isinstance(f, dict) and f.get("apiName")
        }

    def _direct(self, name, raw):
        return {
            "fieldApiName": name,
            "label": raw.get("label") or name,
            "dataType": (raw.get("dataType") or "STRING").upper(),
            "isEditable": bool(raw.get("isEditable", False)),
            "isRelationship": bool(raw.get("isRelationship", False)),
            "relationshipIdField": raw.get("apiName") if raw.get("isRelationship") else None,
            "picklistValues": _choices(raw),
        }

    def _related(self, path, fields):
        rel_name, _, rest = path.partition(".")
        lookup = None
        for raw in fields.values():
            if (raw.get("relationshipName") or "").lower() == rel_name.lower():
                lookup = raw
                break
        if lookup is None or "." in rest:
            return None
        related = self.objects.get(lookup.get("relatedObjectName") or rel_name)
        target = None
        for raw in (related or {}).get("fields") or []:
            if isinstance(raw, dict) and (raw.get("apiName") or "").lower() == rest.lower():
                target = raw
                break
        if target is None:
            return None
        lookup_label = lookup.get("label") or rel_name
        return {
            "fieldApiName": path,
            "label": f"{lookup_label} {target.get('label') or rest}",
            "dataType": (target.get("dataType") or "STRING").upper(),
            "isEditable": False,
            "isRelationship": True,
            "relationshipIdField": lookup.get("apiName"),
            "picklistValues": _choices(target),
        }

    def get_column_metadata(self, object_api_name, field_names) -> list:
        fields = self._fields(object_api_name)
        columns = []
        for name in field_names:
            if "." in name:
                column = self._related(name, fields)
            else:
                raw = fields.get(name.lower())
                column = self._direct(name, raw) if raw else None
            if column is None:
                logger.warning("Field %s not found on %s, skipped", name, object_api_name)
                continue
            columns.append(column)
        return columns


def _infer_data_type(series) -> str:
    values = series.dropna()
    if values.empty:
        return "STRING"
    kind = pd.api.types.infer_dtype(values, skipna=True)
    if kind == "boolean":
        return "BOOLEAN"
    if kind == "integer":
        return "INTEGER"
    if kind in ("floating", "mixed-integer-float", "decimal"):
        return "DOUBLE"
    if kind in ("datetime64", "datetime"):
        return "DATETIME"
    if kind == "date":
        return "DATE"
    return "STRING"


class InferredMetadataProvider(MetadataProvider):
    """Derives columns from the records themselves when no catalog is available."""

    def __init__(self, records):
        self.records = list(records or [])

    def get_column_metadata(self, object_api_name, field_names) -> list:
        if self.records:
            frame = pd.json_normalize(self.records)
        else:
            frame = pd.DataFrame()
        columns = []
        for name in field_names:
            if name in frame.columns:
                data_type = _infer_data_type(frame[name])
            else:
                data_type = "STRING"
            column = {
                "fieldApiName": name,
                "label": name,
                "dataType": data_type,
                "isEditable": name != ID_FIELD,
                "isRelationship": False,
            }
            if "." in name:
                # nested objects are read-only relationship columns
                rel_name = name.split(".", 1)[0]
                id_field = None
                for candidate in (f"{rel_name}Id", f"{rel_name}.{ID_FIELD}"):
                    if candidate in frame.columns:
                        id_field = candidate
                        break
                column.update(
                    isEditable=False, isRelationship=True, relationshipIdField=id_field
                )
            columns.append(column)
        return columns

    def field_names(self) -> list:
        if not self.records:
            return []
        frame = pd.json_normalize(self.records)
        return [str(c) for c in frame.columns]


def load_catalog(path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise MetadataError(f"Cannot read catalog {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise MetadataError(f"Catalog {path} must be a JSON object")
    return data
