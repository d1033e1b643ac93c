"""
Revision and RevisionChange models - the audit store.

Class and table names come from the engine options, so the models are built
at runtime on the host's declarative base rather than declared statically.

Invariants:
- Rows are append-only; once written they are never edited or deleted
- A revision belongs to the audit store, never to the tracked entity
"""
import re
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from paper_trail.config import PaperTrailOptions


def table_name_for(model_name: str) -> str:
    """RevisionChange -> revision_changes"""
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", model_name).lower()
    return snake if snake.endswith("s") else snake + "s"


def define_revision_models(base, options: PaperTrailOptions):
    """
    Build the Revision model (and RevisionChange when enabled) on ``base``.

    Returns (Revision, RevisionChange or None).
    """
    payload_type = Text if options.constrained_storage else JSON
    revision_table = table_name_for(options.revision_model)

    revision_attrs = {
        "__tablename__": revision_table,
        "id": Column(Integer, primary_key=True, index=True, autoincrement=True),
        "model": Column(Text, nullable=False, index=True),  # tracked class name
        "document": Column(payload_type, nullable=False),
        "operation": Column(String(7), nullable=False),
        "user_id": Column(String, nullable=True),  # Nullable for system mutations
        "document_id": Column(String, nullable=False, index=True),
        options.revision_attribute: Column(Integer, nullable=False),
        "created_at": Column(DateTime, nullable=False, default=datetime.utcnow),
    }
    revision_change_model = None

    if options.enable_revision_change_model:
        revision_change_model = type(options.revision_change_model, (base,), {
            "__tablename__": table_name_for(options.revision_change_model),
            "id": Column(Integer, primary_key=True, index=True, autoincrement=True),
            "revision_id": Column(Integer, ForeignKey(f"{revision_table}.id"), nullable=True, index=True),
            "path": Column(Text, nullable=False),
            "document": Column(payload_type, nullable=False),  # the raw delta entry
            "diff": Column(payload_type, nullable=False),
            "created_at": Column(DateTime, nullable=False, default=datetime.utcnow),
            "revision": relationship(options.revision_model, back_populates="changes"),
        })
        revision_attrs["changes"] = relationship(
            options.revision_change_model,
            back_populates="revision",
            order_by=f"{options.revision_change_model}.id"
        )

    revision_model = type(options.revision_model, (base,), revision_attrs)
    return revision_model, revision_change_model
