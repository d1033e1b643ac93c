"""
Change detector: structured delta between two attribute snapshots.

Entries follow the deep-diff shape: N (new), D (deleted), E (edited) and
A (array element change, with a nested ``item``). Paths address the exact
element that changed.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from paper_trail.models.enums import DeltaKind

_MISSING = object()


@dataclass(frozen=True)
class DeltaEntry:
    """One difference between a previous and a current snapshot."""
    kind: DeltaKind
    path: Tuple[Any, ...] = ()
    lhs: Any = None
    rhs: Any = None
    index: Optional[int] = None
    item: Optional["DeltaEntry"] = None

    @property
    def old_value(self) -> Any:
        return self.item.lhs if self.item is not None else self.lhs

    @property
    def new_value(self) -> Any:
        return self.item.rhs if self.item is not None else self.rhs

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping for storage; lhs/rhs only appear when they apply."""
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.path:
            data["path"] = list(self.path)
        if self.kind in (DeltaKind.DELETED, DeltaKind.EDITED):
            data["lhs"] = self.lhs
        if self.kind in (DeltaKind.NEW, DeltaKind.EDITED):
            data["rhs"] = self.rhs
        if self.kind == DeltaKind.ARRAY:
            data["index"] = self.index
            data["item"] = self.item.to_dict()
        return data


def _as_number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, float, Decimal)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return None
    if isinstance(value, str):
        try:
            return Decimal(value.strip()) if value.strip() else Decimal(0)
        except InvalidOperation:
            return None
    return None


def _as_text(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def loosely_equal(lhs: Any, rhs: Any) -> bool:
    """
    Equality tolerant of driver round-tripping: "5" == 5, 1 == True,
    and temporal values equal to their ISO text. Two strings are only equal
    when identical.
    """
    if lhs == rhs:
        return True
    if lhs is None or rhs is None:
        return False
    if isinstance(lhs, str) and isinstance(rhs, str):
        return False  # two strings compare exactly
    left, right = _as_number(lhs), _as_number(rhs)
    if left is not None and right is not None:
        try:
            return left == right
        except InvalidOperation:
            return False
    return _as_text(lhs) == _as_text(rhs)


def strictly_equal(lhs: Any, rhs: Any) -> bool:
    """Deep equality that also distinguishes types (1 != True != "1")."""
    return type(lhs) is type(rhs) and lhs == rhs


def _diff(lhs: Any, rhs: Any, path: Tuple[Any, ...], changes: List[DeltaEntry]) -> None:
    if lhs is _MISSING:
        changes.append(DeltaEntry(DeltaKind.NEW, path, rhs=rhs))
    elif rhs is _MISSING:
        changes.append(DeltaEntry(DeltaKind.DELETED, path, lhs=lhs))
    elif isinstance(lhs, dict) and isinstance(rhs, dict):
        for key in list(lhs) + [k for k in rhs if k not in lhs]:
            _diff(lhs.get(key, _MISSING), rhs.get(key, _MISSING), path + (key,), changes)
    elif isinstance(lhs, list) and isinstance(rhs, list):
        shared = min(len(lhs), len(rhs))
        for i in range(shared):
            _diff(lhs[i], rhs[i], path + (i,), changes)
        for i in range(shared, len(rhs)):
            changes.append(DeltaEntry(DeltaKind.ARRAY, path, index=i, item=DeltaEntry(DeltaKind.NEW, rhs=rhs[i])))
        for i in range(shared, len(lhs)):
            changes.append(DeltaEntry(DeltaKind.ARRAY, path, index=i, item=DeltaEntry(DeltaKind.DELETED, lhs=lhs[i])))
    elif not strictly_equal(lhs, rhs):
        changes.append(DeltaEntry(DeltaKind.EDITED, path, lhs=lhs, rhs=rhs))


def calc_delta(
    previous: Dict[str, Any],
    current: Dict[str, Any],
    exclude: Iterable[str] = (),
    strict: bool = True
) -> List[DeltaEntry]:
    """
    Compute the delta from ``previous`` to ``current``.

    In lenient mode, edits whose two sides are loosely equal are dropped.
    Entries whose path touches an excluded field are always dropped.
    """
    changes: List[DeltaEntry] = []
    _diff(previous, current, (), changes)

    if not strict:
        changes = [
            change for change in changes
            if change.kind != DeltaKind.EDITED or not loosely_equal(change.lhs, change.rhs)
        ]

    excluded = set(exclude)
    return [
        change for change in changes
        if not any(isinstance(part, str) and part in excluded for part in change.path)
    ]
