"""API routes: tracked note mutations and read-only revision history."""
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from paper_trail.database import get_db
from paper_trail.models.domain import Note
from paper_trail.services.errors import PaperTrailError
from paper_trail.services.paper_trail import PaperTrail
from paper_trail.api.schemas import (
    NoteCreate,
    NoteUpdate,
    NoteResponse,
    RevisionResponse,
    RevisionDetailResponse,
    RevisionChangeResponse,
    AuditFailureResponse
)

router = APIRouter()

AUDIT_FAILURE = {
    500: {"model": AuditFailureResponse, "description": "Mutation rolled back - revision could not be recorded"}
}


def get_trail(request: Request) -> PaperTrail:
    """The engine configured on the application at startup."""
    return request.app.state.paper_trail


def _revision_response(trail: PaperTrail, revision, schema=RevisionResponse, **extra):
    return schema(
        id=revision.id,
        model=revision.model,
        document_id=revision.document_id,
        revision=getattr(revision, trail.options.revision_attribute),
        operation=revision.operation,
        document=trail.payload.load(revision.document),
        user_id=revision.user_id,
        created_at=revision.created_at,
        **extra
    )


def _commit_mutation(db: Session, mutate):
    """
    Run one tracked mutation and commit it together with its revision.

    The route owns the transaction: any failure rolls back the entity write
    and its audit rows alike.
    """
    try:
        result = mutate()
        db.commit()
        return result
    except PaperTrailError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": e.message}
        )


def _get_note(db: Session, note_id: int) -> Note:
    note = db.query(Note).filter(Note.id == note_id).first()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


# Note endpoints
@router.post("/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED, responses=AUDIT_FAILURE)
def create_note(
    note_data: NoteCreate,
    db: Session = Depends(get_db),
    trail: PaperTrail = Depends(get_trail),
    x_user_id: Optional[str] = Header(None)
):
    """Create a note; records revision 1."""
    notes = trail.tracked["Note"]
    note = _commit_mutation(db, lambda: notes.create(db, actor_id=x_user_id, **note_data.model_dump()))
    db.refresh(note)
    return note


@router.put("/notes/{note_id}", response_model=NoteResponse, responses=AUDIT_FAILURE)
def update_note(
    note_id: int,
    note_data: NoteUpdate,
    db: Session = Depends(get_db),
    trail: PaperTrail = Depends(get_trail),
    x_user_id: Optional[str] = Header(None)
):
    """Update a note. A revision is recorded only if a tracked field changed."""
    note = _get_note(db, note_id)
    notes = trail.tracked["Note"]
    values = note_data.model_dump(exclude_unset=True)
    _commit_mutation(db, lambda: notes.update(db, note, actor_id=x_user_id, **values))
    db.refresh(note)
    return note


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT, responses=AUDIT_FAILURE)
def delete_note(
    note_id: int,
    db: Session = Depends(get_db),
    trail: PaperTrail = Depends(get_trail),
    x_user_id: Optional[str] = Header(None)
):
    """Delete a note. Deletions always record a revision."""
    note = _get_note(db, note_id)
    notes = trail.tracked["Note"]
    _commit_mutation(db, lambda: notes.destroy(db, note, actor_id=x_user_id))


# Revision endpoints
@router.get("/revisions/id/{revision_id}", response_model=RevisionDetailResponse)
def get_revision(revision_id: int, db: Session = Depends(get_db), trail: PaperTrail = Depends(get_trail)):
    """Get one revision with its change records."""
    revision = db.query(trail.Revision).filter(trail.Revision.id == revision_id).first()
    if not revision:
        raise HTTPException(status_code=404, detail="Revision not found")

    changes = []
    if trail.RevisionChange is not None:
        changes = [
            RevisionChangeResponse(
                id=change.id,
                path=change.path,
                document=trail.payload.load(change.document),
                diff=trail.payload.load(change.diff)
            )
            for change in revision.changes
        ]
    return _revision_response(trail, revision, RevisionDetailResponse, changes=changes)


@router.get("/revisions/{model}/{document_id}", response_model=List[RevisionResponse])
def list_revisions(
    model: str,
    document_id: str,
    db: Session = Depends(get_db),
    trail: PaperTrail = Depends(get_trail)
):
    """List the revisions of one document, oldest first."""
    return [_revision_response(trail, revision) for revision in trail.history(db, model, document_id)]
