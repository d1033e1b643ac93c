"""
Payload formats for stored documents and diffs.

JSON columns take structured values; constrained storage (e.g. MySQL
MEDIUMTEXT) takes JSON text. The format is chosen once per engine.
"""
import json
from typing import Any

from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python

from paper_trail.services.errors import SerializationError

# pydantic-core raises plain UnicodeDecodeError for bytes that are not UTF-8
_UNSERIALIZABLE = (PydanticSerializationError, UnicodeDecodeError, ValueError, TypeError)


def jsonable(value: Any) -> Any:
    """Convert a value to plain JSON types (datetimes become ISO strings)."""
    try:
        return to_jsonable_python(value)
    except _UNSERIALIZABLE as exc:
        raise SerializationError(f"Cannot serialize {type(value).__name__}: {exc}") from exc


def diff_to_string(value: Any) -> str:
    """
    Textual rendering of one side of a change, for character diffs.

    None renders as "", booleans as "1"/"0", strings as themselves, composite
    values as compact JSON.
    """
    if value is None:
        return ""
    if value is True:
        return "1"
    if value is False:
        return "0"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(jsonable(value), separators=(",", ":"))
    rendered = jsonable(value)
    return rendered if isinstance(rendered, str) else json.dumps(rendered, separators=(",", ":"))


class StructuredPayload:
    """Stores payloads as JSON-compatible values in a JSON column."""

    def dump(self, value: Any) -> Any:
        return jsonable(value)

    def load(self, stored: Any) -> Any:
        return stored


class TextPayload:
    """Stores payloads as JSON text for backends without a JSON column."""

    def dump(self, value: Any) -> str:
        try:
            return to_json(value).decode("utf-8")
        except _UNSERIALIZABLE as exc:
            raise SerializationError(f"Cannot serialize {type(value).__name__}: {exc}") from exc

    def load(self, stored: Any) -> Any:
        return json.loads(stored) if stored is not None else None


def payload_for(constrained_storage: bool):
    """Pick the payload strategy for an engine."""
    return TextPayload() if constrained_storage else StructuredPayload()
