"""
Snapshot Codec

Turns JSON documents into AppData and back. Used by the local snapshot
slot, by file import/export and by the Drive backup.

Two decoding modes:
- lenient (local startup): never fails; an invalid record is dropped on its
  own, and a collection that is not a list becomes empty
- strict (import, cloud restore): fails with FormatError so the caller can
  refuse to replace good local data with garbage

Missing collections are fine in both modes - older backups may lack the
misc expenses entirely.
"""

import json
from datetime import date
from typing import Any, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from piggery.models.records import AppData, FeedRecord, MiscRecord, Pig, SaleRecord
from piggery.services.storage.interface import FormatError


logger = structlog.get_logger(__name__)


# AppData field -> (accepted document keys, record model)
_COLLECTIONS = {
    "pigs": (("animals", "pigs"), Pig),
    "feed_records": (("feedRecords",), FeedRecord),
    "sale_records": (("saleRecords",), SaleRecord),
    "misc_records": (("miscRecords",), MiscRecord),
}

_ADAPTERS = {
    field_name: TypeAdapter(tuple[model, ...])
    for field_name, (_, model) in _COLLECTIONS.items()
}

_KNOWN_KEYS = {key for keys, _ in _COLLECTIONS.values() for key in keys}


def _decode_records(key: str, value: Any, model) -> tuple:
    """Keep every valid record of a collection; drop and log the rest."""
    if not isinstance(value, list):
        logger.warning(
            "snapshot_field_discarded",
            field=key,
            value_type=type(value).__name__,
        )
        return ()

    records = []
    for index, item in enumerate(value):
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "snapshot_record_discarded",
                field=key,
                index=index,
                record_id=item.get("id") if isinstance(item, dict) else None,
                errors=e.error_count(),
            )
    return tuple(records)


def decode_snapshot(raw: Union[str, bytes, dict, Any], strict: bool = False) -> AppData:
    """
    Build an AppData from a JSON string/bytes or an already-parsed object.

    Args:
        raw: JSON text or decoded JSON value
        strict: Raise FormatError instead of falling back to empty collections

    Raises:
        FormatError: In strict mode, when the payload is not JSON, the root
            is not an object, no snapshot collection is present, or a
            collection fails validation
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            if strict:
                raise FormatError(f"Not valid JSON: {e}") from e
            logger.warning("snapshot_not_json", error=str(e))
            return AppData()

    if not isinstance(raw, dict):
        if strict:
            raise FormatError(f"Expected a JSON object, got {type(raw).__name__}")
        logger.warning("snapshot_root_not_object", root_type=type(raw).__name__)
        return AppData()

    if strict and not _KNOWN_KEYS.intersection(raw):
        raise FormatError("No animals, feedRecords, saleRecords or miscRecords found")

    fields = {}
    for field_name, (keys, model) in _COLLECTIONS.items():
        value = next((raw[k] for k in keys if raw.get(k) is not None), None)
        if value is None:
            fields[field_name] = ()
        elif not strict:
            fields[field_name] = _decode_records(keys[0], value, model)
        else:
            try:
                fields[field_name] = _ADAPTERS[field_name].validate_python(value)
            except ValidationError as e:
                raise FormatError(
                    f"Invalid {keys[0]}: {e.error_count()} validation error(s)"
                ) from e

    return AppData(**fields)


def encode_snapshot(snapshot: AppData, pretty: bool = False) -> str:
    """Serialize a snapshot to the JSON document shape."""
    return json.dumps(
        snapshot.to_document(),
        indent=2 if pretty else None,
        ensure_ascii=False,
    )


def parse_import(payload: Union[str, bytes]) -> AppData:
    """Decode a user-supplied backup file. Raises FormatError when malformed."""
    return decode_snapshot(payload, strict=True)


def export_filename(day: date) -> str:
    """Name of a downloadable backup, e.g. piggery-data-2025-03-01.json."""
    return f"piggery-data-{day.isoformat()}.json"
