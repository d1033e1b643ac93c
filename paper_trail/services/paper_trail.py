"""
Paper trail engine - every tracked create/update/destroy MUST go through here.

Each mutation runs in two phases inside the caller's transaction:

1. Before the entity row is written: filter the previous and current
   snapshots, compute the delta and stamp the revision counter.
2. After the entity row is flushed: build the revision, expand change
   records, and save them with the same session.

The caller commits. If any step fails the caller rolls back, and neither the
entity write nor its revision survives.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Integer, inspect
from sqlalchemy.orm import Session

from paper_trail.config import PaperTrailOptions
from paper_trail.models.enums import Operation
from paper_trail.models.revision import define_revision_models
from paper_trail.services.builder import RevisionBuilder, document_id_for
from paper_trail.services.delta import DeltaEntry, calc_delta
from paper_trail.services.expander import ChangeRecordExpander, NullExpander
from paper_trail.services.orchestrator import persist
from paper_trail.services.schema import ensure_revision_column
from paper_trail.services.sequencer import RevisionSequencer
from paper_trail.services.serialization import payload_for
from paper_trail.services.snapshot import (
    column_keys,
    committed_value,
    committed_values,
    current_values,
    filter_snapshot,
    modified_keys,
)

logger = logging.getLogger(__name__)


class PaperTrail:
    """
    Revision tracking for SQLAlchemy models.

    Builds the Revision (and optionally RevisionChange) models on the host's
    declarative base at construction, then wraps models passed to ``track``.
    """

    def __init__(self, base, options: Optional[PaperTrailOptions] = None):
        self.options = options or PaperTrailOptions()
        self.payload = payload_for(self.options.constrained_storage)

        self.Revision, self.RevisionChange = define_revision_models(base, self.options)

        self.sequencer = RevisionSequencer(self.options.revision_attribute, self.options.fail_hard)
        self.builder = RevisionBuilder(
            self.Revision,
            self.options.revision_attribute,
            self.payload,
            get_user_id=self.options.get_user_id,
            fail_hard=self.options.fail_hard
        )
        if self.options.enable_revision_change_model:
            self.expander = ChangeRecordExpander(self.RevisionChange, self.payload)
        else:
            self.expander = NullExpander()

        self.tracked: Dict[str, "TrackedModel"] = {}

    def models(self) -> Dict[str, type]:
        """Audit models by class name, for registries like ``db[name] = model``."""
        models = {self.Revision.__name__: self.Revision}
        if self.RevisionChange is not None:
            models[self.RevisionChange.__name__] = self.RevisionChange
        return models

    def track(self, model, bind=None) -> "TrackedModel":
        """
        Enable revisions on a declarative model and return its tracked wrapper.

        Adds the integer counter column (default 0) when the model lacks it.
        With auto-schema enabled and a ``bind`` given, an existing table gets
        the column too.
        """
        attribute = self.options.revision_attribute
        if attribute not in inspect(model).attrs:
            setattr(model, attribute, Column(attribute, Integer, default=0))

        logger.info("Enabling paper trail on %s", model.__name__)
        tracked = TrackedModel(self, model)
        self.tracked[model.__name__] = tracked

        if bind is not None:
            self.migrate(bind, [model])
        return tracked

    def migrate(self, bind, models=None) -> List[str]:
        """
        Auto-schema: add the counter column to existing tracked tables.

        No-op unless ``enable_migration`` is set. Returns the tables altered.
        """
        if not self.options.enable_migration:
            return []
        if models is None:
            models = [tracked.model for tracked in self.tracked.values()]

        altered = []
        for model in models:
            if ensure_revision_column(bind, model.__table__.name, self.options.revision_attribute):
                altered.append(model.__table__.name)
        return altered

    def history(self, session: Session, model_name: str, document_id: str) -> list:
        """Revisions of one document, oldest first."""
        counter = getattr(self.Revision, self.options.revision_attribute)
        return (
            session.query(self.Revision)
            .filter(self.Revision.model == model_name, self.Revision.document_id == str(document_id))
            .order_by(counter.asc())
            .all()
        )


class TrackedModel:
    """CRUD surface for one tracked model; every call records its revision."""

    def __init__(self, trail: PaperTrail, model):
        self.trail = trail
        self.model = model

    @property
    def options(self) -> PaperTrailOptions:
        return self.trail.options

    def create(self, session: Session, actor_id: Optional[Any] = None, **values):
        instance = self.model(**values)
        session.add(instance)
        self._mutate(session, instance, Operation.CREATE, actor_id)
        return instance

    def update(self, session: Session, instance, actor_id: Optional[Any] = None, **values):
        self._load(session, instance)
        for key, value in values.items():
            setattr(instance, key, value)
        self._mutate(session, instance, Operation.UPDATE, actor_id)
        return instance

    def destroy(self, session: Session, instance, actor_id: Optional[Any] = None) -> None:
        self._load(session, instance)
        session.delete(instance)
        self._mutate(session, instance, Operation.DESTROY, actor_id)

    def history(self, session: Session, instance) -> list:
        return self.trail.history(session, self.model.__name__, document_id_for(instance))

    def _load(self, session: Session, instance) -> None:
        # Committed values come from attribute history, so expired columns are
        # loaded before the caller's values are applied
        session.add(instance)
        for key in column_keys(instance):
            getattr(instance, key)

    def _snapshots(self, instance, operation: Operation):
        keys = column_keys(instance)
        if self.options.enable_compression and operation != Operation.DESTROY:
            keys = modified_keys(instance)
        previous = filter_snapshot(committed_values(instance, keys), self.options.exclude)
        current = filter_snapshot(current_values(instance, keys), self.options.exclude)
        return keys, previous, current

    def _mutate(self, session: Session, instance, operation: Operation, actor_id: Optional[Any]) -> None:
        keys, previous, current = self._snapshots(instance, operation)

        delta: List[DeltaEntry] = calc_delta(
            previous,
            current,
            self.options.exclude,
            self.options.enable_strict_diff
        )
        logger.debug("delta for %s: %s", self.model.__name__, delta)

        committed_counter = committed_value(instance, self.options.revision_attribute)
        should_revision = self.trail.sequencer.stamp(instance, operation, delta, committed_counter)

        # The entity row is written before its revision
        session.flush()

        if not should_revision:
            return

        if operation != Operation.DESTROY:
            # Pick up values generated by the insert/update
            current = filter_snapshot(current_values(instance, keys), self.options.exclude)

        revision = self.trail.builder.build(instance, operation, current, actor_id)
        change_records = self.trail.expander.expand(delta)
        revision_id = persist(session, revision, change_records)
        logger.debug(
            "Saved revision %s (%s #%s) with %d change record(s)",
            revision_id,
            self.model.__name__,
            getattr(revision, self.options.revision_attribute),
            len(change_records),
        )
