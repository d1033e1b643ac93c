"""Pytest configuration and shared fixtures."""
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import Column, Date, DateTime, Integer, JSON, String
from sqlalchemy.orm import declarative_base, sessionmaker

from paper_trail.config import PaperTrailOptions
from paper_trail.database import build_engine
from paper_trail.services.paper_trail import PaperTrail


def _widget_model(Base):
    class Widget(Base):
        __tablename__ = "widgets"

        id = Column(Integer, primary_key=True, index=True, autoincrement=True)
        name = Column(String, nullable=True)
        quantity = Column(Integer, nullable=True)
        due_on = Column(Date, nullable=True)
        tags = Column(JSON, nullable=True)  # nested document, never tracked
        updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    return Widget


@pytest.fixture
def make_trail():
    """
    Build an isolated engine + tracked Widget model on a fresh in-memory database.

    Each call gets its own declarative base, so options may differ per test.
    """
    sessions = []

    def _make(**option_values):
        Base = declarative_base()
        Widget = _widget_model(Base)

        trail = PaperTrail(Base, PaperTrailOptions(**option_values))
        widgets = trail.track(Widget)

        engine = build_engine("sqlite://")
        Base.metadata.create_all(engine)
        session = sessionmaker(bind=engine)()
        sessions.append(session)

        return SimpleNamespace(
            trail=trail,
            Widget=Widget,
            widgets=widgets,
            Revision=trail.Revision,
            RevisionChange=trail.RevisionChange,
            engine=engine,
            db=session,
        )

    yield _make

    for session in sessions:
        session.close()


@pytest.fixture
def harness(make_trail):
    """Default options: strict diff, no change records, structured payloads."""
    return make_trail()


@pytest.fixture
def change_harness(make_trail):
    """Change records enabled."""
    return make_trail(enable_revision_change_model=True)


@pytest.fixture
def sample_widget(harness):
    """A committed widget at revision 1."""
    widget = harness.widgets.create(harness.db, actor_id="user_123", name="Bob", quantity=5, tags=["x"])
    harness.db.commit()
    return widget
