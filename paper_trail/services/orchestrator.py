"""
Persistence orchestrator: writes a revision and its change records inside the
caller's transaction.

The session is borrowed. Writes are enlisted with add/flush only; committing
or rolling back belongs to whoever opened the transaction.
"""
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paper_trail.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


def persist(session: Session, revision, change_records: List = ()) -> int:
    """
    Save ``revision``, then each change record linked to it.

    Returns the generated revision id. Any failed save raises
    PersistenceFailure and leaves the session needing a rollback, which
    discards the entity write along with every audit row from this call.
    """
    try:
        session.add(revision)
        session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Revision save error for %s %s", revision.model, revision.document_id)
        raise PersistenceFailure(f"Could not save revision for {revision.model} {revision.document_id}", exc) from exc

    for record in change_records:
        try:
            session.add(record)
            session.flush()
            revision.changes.append(record)
        except SQLAlchemyError as exc:
            logger.exception("RevisionChange save error for path %s", record.path)
            raise PersistenceFailure(f"Could not save change record for path {record.path}", exc) from exc

    if change_records:
        # Association writes
        try:
            session.flush()
        except SQLAlchemyError as exc:
            logger.exception("RevisionChange link error for revision %s", revision.id)
            raise PersistenceFailure(f"Could not link change records to revision {revision.id}", exc) from exc

    return revision.id
