"""Tests for engine options and the auto-schema collaborator."""
import pytest
from pydantic import ValidationError
from sqlalchemy import Column, Integer, String, inspect, text
from sqlalchemy.orm import declarative_base

from paper_trail.config import DEFAULT_EXCLUDE, PaperTrailOptions
from paper_trail.database import build_engine, normalize_url
from paper_trail.models.revision import table_name_for
from paper_trail.services.paper_trail import PaperTrail
from paper_trail.services.schema import has_revision_column


def _column_names(engine, table):
    return {column["name"] for column in inspect(engine).get_columns(table)}


class TestOptions:
    def test_defaults(self):
        options = PaperTrailOptions()

        assert options.revision_attribute == "revision"
        assert options.revision_model == "Revision"
        assert options.revision_change_model == "RevisionChange"
        assert options.enable_strict_diff is True
        assert options.enable_revision_change_model is False
        assert options.constrained_storage is False
        assert set(DEFAULT_EXCLUDE) <= set(options.exclude)

    def test_counter_is_always_excluded(self):
        options = PaperTrailOptions(revision_attribute="version", exclude=["id"])
        assert options.exclude == ["id", "version"]

    def test_options_are_frozen(self):
        options = PaperTrailOptions()
        with pytest.raises(ValidationError):
            options.fail_hard = True

    def test_model_names_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            PaperTrailOptions(revision_model="")

    def test_table_names(self):
        assert table_name_for("Revision") == "revisions"
        assert table_name_for("RevisionChange") == "revision_changes"
        assert table_name_for("AuditHistory") == "audit_historys"

    def test_postgres_url_fixup(self):
        assert normalize_url("postgres://u@h/db") == "postgresql://u@h/db"
        assert normalize_url("sqlite://") == "sqlite://"


class TestCustomNames:
    def test_custom_counter_and_model_names(self):
        Base = declarative_base()

        class Page(Base):
            __tablename__ = "pages"
            id = Column(Integer, primary_key=True)
            title = Column(String)

        trail = PaperTrail(Base, PaperTrailOptions(
            revision_attribute="version",
            revision_model="PageVersion",
            revision_change_model="PageVersionChange",
            enable_revision_change_model=True
        ))
        pages = trail.track(Page)

        engine = build_engine("sqlite://")
        Base.metadata.create_all(engine)
        assert "version" in _column_names(engine, "pages")
        assert "version" in _column_names(engine, "page_versions")
        assert "revision_id" in _column_names(engine, "page_version_changes")

        from sqlalchemy.orm import Session
        with Session(engine) as db:
            page = pages.create(db, title="Home")
            db.commit()

            history = pages.history(db, page)
            assert history[0].version == 1
            assert history[0].changes[0].path == "title"


class TestAutoSchema:
    def _legacy_table(self):
        engine = build_engine("sqlite://")
        with engine.begin() as connection:
            connection.execute(text("CREATE TABLE gadgets (id INTEGER PRIMARY KEY, name VARCHAR)"))
            connection.execute(text("INSERT INTO gadgets (id, name) VALUES (1, 'old')"))

        Base = declarative_base()

        class Gadget(Base):
            __tablename__ = "gadgets"
            id = Column(Integer, primary_key=True)
            name = Column(String)

        return engine, Base, Gadget

    def test_adds_missing_counter_column(self):
        engine, Base, Gadget = self._legacy_table()
        trail = PaperTrail(Base, PaperTrailOptions(enable_migration=True))

        trail.track(Gadget, bind=engine)

        assert "revision" in _column_names(engine, "gadgets")
        with engine.connect() as connection:
            assert connection.execute(text("SELECT revision FROM gadgets")).scalar() == 0

    def test_disabled_migration_leaves_table_alone(self):
        engine, Base, Gadget = self._legacy_table()
        trail = PaperTrail(Base, PaperTrailOptions())

        trail.track(Gadget, bind=engine)

        assert "revision" not in _column_names(engine, "gadgets")
        assert trail.migrate(engine) == []

    def test_migrate_is_idempotent(self):
        engine, Base, Gadget = self._legacy_table()
        trail = PaperTrail(Base, PaperTrailOptions(enable_migration=True))
        trail.track(Gadget)

        assert trail.migrate(engine) == ["gadgets"]
        assert trail.migrate(engine) == []

    def test_missing_table_needs_no_column(self):
        engine = build_engine("sqlite://")
        assert has_revision_column(engine, "nowhere", "revision")
