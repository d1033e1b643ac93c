"""
Change record expansion.

Each delta entry becomes one change record carrying a character-level diff
of the old and new values. The null strategy is used when change records are
disabled.
"""
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Any, Dict, List

from paper_trail.models.enums import DiffOp
from paper_trail.services.delta import DeltaEntry
from paper_trail.services.serialization import diff_to_string


@dataclass(frozen=True)
class DiffSpan:
    op: DiffOp
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op.value, "value": self.value}


def diff_chars(old: str, new: str) -> List[DiffSpan]:
    """
    Character diff of ``old`` into ``new``.

    Equal and insert spans concatenate to ``new``; equal and delete spans
    concatenate to ``old``. Within a replaced region the delete comes first.
    """
    if not old and not new:
        return []

    spans: List[DiffSpan] = []
    matcher = SequenceMatcher(None, old, new, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            spans.append(DiffSpan(DiffOp.EQUAL, old[i1:i2]))
            continue
        if i2 > i1:
            spans.append(DiffSpan(DiffOp.DELETE, old[i1:i2]))
        if j2 > j1:
            spans.append(DiffSpan(DiffOp.INSERT, new[j1:j2]))
    return spans


class NullExpander:
    """Change records disabled."""
    enabled = False

    def expand(self, delta: List[DeltaEntry]) -> list:
        return []


class ChangeRecordExpander:
    """Builds one unsaved change record per delta entry."""
    enabled = True

    def __init__(self, revision_change_model, payload):
        self.revision_change_model = revision_change_model
        self.payload = payload

    def expand(self, delta: List[DeltaEntry]) -> list:
        records = []
        for entry in delta:
            spans = diff_chars(diff_to_string(entry.old_value), diff_to_string(entry.new_value))
            records.append(self.revision_change_model(
                path=str(entry.path[0]) if entry.path else "",
                document=self.payload.dump(entry.to_dict()),
                diff=self.payload.dump([span.to_dict() for span in spans]),
            ))
        return records
