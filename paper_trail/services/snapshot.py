"""
Field filter: turns raw attribute sets into comparable snapshots.

Nested documents (dicts, lists, sets, related objects) are not tracked and are
dropped silently. Temporal values are kept.
"""
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import inspect

_SCALARS = (str, bytes, int, float, bool, Decimal, UUID, Enum)
_TEMPORALS = (date, time, timedelta)  # datetime is a date


def is_tracked_value(value: Any) -> bool:
    """True for None, scalars and temporal values."""
    return value is None or isinstance(value, _SCALARS + _TEMPORALS)


def filter_snapshot(raw: Dict[str, Any], exclude: Iterable[str]) -> Dict[str, Any]:
    """
    Remove excluded fields and composite values from a raw attribute set.

    Pure and idempotent: filtering an already filtered snapshot returns an
    equal snapshot.
    """
    excluded = set(exclude)
    return {
        key: value
        for key, value in raw.items()
        if key not in excluded and is_tracked_value(value)
    }


def column_keys(instance) -> list:
    """Mapped column attribute keys of an ORM instance, in mapper order."""
    return [attr.key for attr in inspect(instance).mapper.column_attrs]


def current_values(instance, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """In-flight attribute values, including unsaved modifications."""
    keys = column_keys(instance) if keys is None else keys
    return {key: getattr(instance, key) for key in keys}


def committed_value(instance, key: str) -> Any:
    """
    The last value loaded from (or flushed to) the database for one attribute.

    None for pending instances and for attributes that were never loaded.
    """
    history = inspect(instance).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


def committed_values(instance, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Committed counterpart of ``current_values``."""
    keys = column_keys(instance) if keys is None else keys
    return {key: committed_value(instance, key) for key in keys}


def modified_keys(instance) -> list:
    """Column attributes with pending changes in this unit of work."""
    state = inspect(instance)
    return [key for key in column_keys(instance) if state.attrs[key].history.has_changes()]
