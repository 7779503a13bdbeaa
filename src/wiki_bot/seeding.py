"""
Bulk loading of wiki records.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from .errors import DecodeFailure
from .models import Record
from .store import DocumentStore, parse_object_id


def load_records(path: Path) -> list[dict[str, Any]]:
    """Read a list of record documents from a JSON or YAML file."""
    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f) or []
        else:
            data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of records")
    return data


def seed(
    store: DocumentStore,
    collection: str,
    records: list[dict[str, Any]],
) -> list[Record]:
    """
    Upsert each record.

    Records carrying an ``_id`` are matched on it, the rest on their name.
    Loading the same file twice leaves the collection unchanged.

    Raises:
        DecodeFailure: if an entry is not a mapping or has neither key.
    """
    saved = []
    for index, raw in enumerate(records):
        if not isinstance(raw, dict):
            raise DecodeFailure(f"record {index} is not a mapping: {raw!r}")
        fields = dict(raw)
        record_id = fields.pop("_id", None)
        if record_id:
            match = {"_id": parse_object_id(str(record_id))}
        elif fields.get("name"):
            match = {"name": fields["name"]}
        else:
            raise DecodeFailure(f"record {index} has neither an _id nor a name: {raw!r}")
        saved.append(store.upsert(collection, match, {"$set": fields}))
    return saved
