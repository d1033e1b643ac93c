"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from paper_trail.models.enums import Operation


# Note schemas
class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: Optional[str] = None
    owner_user_id: str
    pinned: bool = False


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    body: Optional[str] = None
    pinned: Optional[bool] = None

    @field_validator("title", "pinned")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    body: Optional[str]
    owner_user_id: str
    pinned: bool
    revision: int
    created_at: datetime
    updated_at: datetime


# Revision schemas
class RevisionChangeResponse(BaseModel):
    id: int
    path: str
    document: Any  # the raw delta entry
    diff: List[dict]


class RevisionResponse(BaseModel):
    """One historical version of one tracked document."""
    id: int
    model: str
    document_id: str
    revision: int
    operation: Operation
    document: dict
    user_id: Optional[str]
    created_at: datetime


class RevisionDetailResponse(RevisionResponse):
    changes: List[RevisionChangeResponse] = []


# Error response
class AuditFailureResponse(BaseModel):
    """Response when a mutation is rolled back because its revision could not be recorded."""
    message: str
