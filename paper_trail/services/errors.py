"""Errors raised by the paper trail engine. None of them are retried."""


class PaperTrailError(Exception):
    """Base class for revision tracking failures."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class MissingRevisionCounter(PaperTrailError):
    """An update reached the engine without a resolvable prior counter (fail-hard only)."""


class InvariantViolation(PaperTrailError):
    """The counter was not stamped before the revision was built."""


class SerializationError(PaperTrailError):
    """A field value cannot be rendered to text or to a JSON payload."""


class PersistenceFailure(PaperTrailError):
    """A revision or change record could not be saved; the mutation must roll back."""
    def __init__(self, message: str, original: Exception = None):
        self.original = original
        super().__init__(message)


class MissingActorId(PaperTrailError):
    """No actor id was passed and the resolver returned none (fail-hard only)."""
