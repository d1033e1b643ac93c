"""Revision builder: assembles the revision row for a stamped entity."""
from typing import Any, Callable, Dict, Optional

from sqlalchemy import inspect

from paper_trail.models.enums import Operation
from paper_trail.services.errors import InvariantViolation, MissingActorId


def document_id_for(instance) -> str:
    """Stringified primary key; composite keys are comma-joined."""
    identity = inspect(instance).identity
    if identity is None:
        raise InvariantViolation(f"{type(instance).__name__} has no identity; flush it before building a revision")
    return ",".join(str(part) for part in identity)


class RevisionBuilder:
    """Builds (but never saves) revision rows."""

    def __init__(
        self,
        revision_model,
        revision_attribute: str,
        payload,
        get_user_id: Optional[Callable[[], Optional[str]]] = None,
        fail_hard: bool = False
    ):
        self.revision_model = revision_model
        self.revision_attribute = revision_attribute
        self.payload = payload
        self.get_user_id = get_user_id
        self.fail_hard = fail_hard

    def resolve_actor(self, actor_id: Optional[Any]) -> Optional[str]:
        """The caller's actor wins; the configured resolver is the fallback."""
        if actor_id is None and self.get_user_id is not None:
            actor_id = self.get_user_id()
        if actor_id is None and self.fail_hard:
            raise MissingActorId("No actor id was passed and none could be resolved")
        return str(actor_id) if actor_id is not None else None

    def build(self, instance, operation: Operation, document: Dict[str, Any], actor_id: Optional[Any] = None):
        counter = getattr(instance, self.revision_attribute)
        if counter is None:
            raise InvariantViolation(
                f"{type(instance).__name__}.{self.revision_attribute} is unset; "
                "the revision counter must be stamped before building a revision"
            )

        revision = self.revision_model(
            model=type(instance).__name__,
            document=self.payload.dump(document),
            operation=operation.value,
            user_id=self.resolve_actor(actor_id),
            document_id=document_id_for(instance),
        )
        setattr(revision, self.revision_attribute, counter)
        return revision
