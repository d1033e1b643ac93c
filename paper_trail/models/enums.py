"""Enums for paper trail revisions - these define the valid operation kinds."""
from enum import Enum


class Operation(str, Enum):
    """The three mutations that can produce a revision. No others are recorded."""
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"


class DiffOp(str, Enum):
    """Span kinds in a character-level diff."""
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


class DeltaKind(str, Enum):
    """Kinds of delta entries between two attribute snapshots."""
    NEW = "N"
    DELETED = "D"
    EDITED = "E"
    ARRAY = "A"
