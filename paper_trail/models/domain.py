"""Demo domain model served by the API - a tracked Note."""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from paper_trail.database import Base


class Note(Base):
    """
    A short note whose every create/update/destroy is recorded as a revision.

    The revision counter column is added when the model is tracked.
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    owner_user_id = Column(String, nullable=False)
    pinned = Column(Boolean, nullable=False, default=False)

    # Timestamps (excluded from revisions)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
