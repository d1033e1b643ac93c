"""
Revision sequencer: decides whether a mutation earns a revision and stamps
the next counter onto the entity.

Lost-update protection here is a read-then-increment, not a compare-and-swap:
two transactions that both read counter N will both stamp N + 1. True
lost-update prevention relies on the host transaction's isolation level.
"""
import logging
from typing import List, Optional, Tuple

from paper_trail.models.enums import Operation
from paper_trail.services.delta import DeltaEntry
from paper_trail.services.errors import MissingRevisionCounter

logger = logging.getLogger(__name__)


def decide(operation: Operation, delta: List[DeltaEntry], current_counter: Optional[int]) -> Tuple[bool, int]:
    """
    Return (should_revision, next_counter).

    A destroy always earns a revision; create and update only when something
    changed. A missing counter counts as 0.
    """
    should_revision = operation == Operation.DESTROY or bool(delta)
    return should_revision, (current_counter or 0) + 1


class RevisionSequencer:
    """The only writer of a tracked entity's revision counter."""

    def __init__(self, revision_attribute: str, fail_hard: bool = False):
        self.revision_attribute = revision_attribute
        self.fail_hard = fail_hard

    def stamp(
        self,
        instance,
        operation: Operation,
        delta: List[DeltaEntry],
        committed_counter: Optional[int]
    ) -> bool:
        """
        Overwrite the counter with its committed value, then advance it if the
        mutation earns a revision. Returns whether it does.

        Whatever the caller put in the counter field is discarded, so revision
        numbers cannot be forged or skipped.
        """
        setattr(instance, self.revision_attribute, committed_counter)

        if self.fail_hard and committed_counter is None and operation == Operation.UPDATE:
            raise MissingRevisionCounter(
                f"Revision counter '{self.revision_attribute}' was not loaded for "
                f"{type(instance).__name__} before update"
            )

        should_revision, next_counter = decide(operation, delta, committed_counter)
        logger.debug(
            "%s %s: %d change(s), counter %s -> %s",
            operation.value,
            type(instance).__name__,
            len(delta),
            committed_counter,
            next_counter if should_revision else committed_counter,
        )

        if should_revision:
            setattr(instance, self.revision_attribute, next_counter)
        return should_revision
