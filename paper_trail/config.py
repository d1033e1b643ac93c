"""Options for the paper trail engine, resolved once at construction."""
from typing import Callable, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EXCLUDE = [
    "id",
    "created_at",
    "updated_at",
    "deleted_at",
    "createdAt",
    "updatedAt",
    "deletedAt",
]


class PaperTrailOptions(BaseModel):
    """
    Engine configuration.

    Every switch here is a deployment-time decision: the engine picks its
    diff policy, payload format and change-record strategy from these once,
    never per record.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    revision_attribute: str = Field("revision", min_length=1)
    exclude: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE), validate_default=True)

    revision_model: str = Field("Revision", min_length=1)
    revision_change_model: str = Field("RevisionChange", min_length=1)
    enable_revision_change_model: bool = False

    enable_strict_diff: bool = True
    enable_compression: bool = False
    constrained_storage: bool = False  # text columns instead of JSON (e.g. MySQL)
    enable_migration: bool = False

    # Strict mode: missing counters and missing actors are errors, not defaults
    fail_hard: bool = False

    get_user_id: Optional[Callable[[], Optional[str]]] = None

    @field_validator("exclude")
    @classmethod
    def exclude_revision_attribute(cls, value, info):
        """The counter itself is never compared or stored."""
        revision_attribute = info.data.get("revision_attribute", "revision")
        if revision_attribute not in value:
            value = list(value) + [revision_attribute]
        return value
