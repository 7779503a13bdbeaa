"""
Domain models for wiki-bot.
"""

from dataclasses import dataclass
from typing import Any

from .errors import DecodeFailure

# Platform limit on the length of an autocomplete choice label
MAX_CHOICE_NAME_LENGTH = 100


@dataclass(frozen=True)
class Record:
    """A wiki entry stored in the document collection."""

    record_id: str
    name: str
    description: str = ""
    image_link: str = ""
    wiki_link: str = ""

    # Classification fields, present on some records only
    pack: str = ""
    school: str = ""

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Record":
        """
        Decode a raw store document.

        Projected documents (only ``_id`` and ``name``) decode fine; the
        remaining fields fall back to empty strings.

        Raises:
            DecodeFailure: if the identifier is missing, the name is not a
                non-empty string, or any text field has the wrong type.
        """
        if "_id" not in document or document["_id"] is None:
            raise DecodeFailure("document has no _id")

        name = document.get("name")
        if not isinstance(name, str) or not name:
            raise DecodeFailure(f"document {document['_id']} has no usable name")

        text_fields = {}
        for key in ("description", "image_link", "wiki_link", "pack", "school"):
            value = document.get(key)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise DecodeFailure(
                    f"document {document['_id']} field {key!r} is {type(value).__name__}, "
                    "expected str"
                )
            text_fields[key] = value

        return cls(record_id=str(document["_id"]), name=name, **text_fields)

    def classifications(self) -> list[tuple[str, str]]:
        """Labelled classification fields that carry a value."""
        labelled = [("Pack", self.pack), ("School", self.school)]
        return [(label, value) for label, value in labelled if value]


@dataclass(frozen=True)
class Suggestion:
    """An autocomplete choice: a display label backed by a record id."""

    name: str
    value: str

    @classmethod
    def from_record(cls, record: Record) -> "Suggestion":
        return cls(name=record.name[:MAX_CHOICE_NAME_LENGTH], value=record.record_id)

    def to_dict(self) -> dict[str, str]:
        """Convert to the platform's choice shape."""
        return {"name": self.name[:MAX_CHOICE_NAME_LENGTH], "value": self.value}
