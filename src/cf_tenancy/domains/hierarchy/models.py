"""Pydantic models for namespace-hierarchy objects."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from cf_tenancy.models.common import ResourceMetadata


class AnchorState(str, Enum):
    """Convergence state of a provisioned namespace."""

    PENDING = "Pending"
    OK = "Ok"
    MISSING = "Missing"
    CONFLICT = "Conflict"
    FORBIDDEN = "Forbidden"


class Anchor(BaseModel):
    """Snapshot of an object whose acceptance materializes a child namespace.

    ``namespace`` is the parent namespace the object lives in; ``name`` is
    both the object name and the name of the child namespace.
    """

    metadata: ResourceMetadata
    display_name: str | None = Field(None, description="Human display name of the org/space")
    state: AnchorState = Field(AnchorState.PENDING, description="Convergence state")
    suspended: bool = Field(False, description="Whether the org is suspended")

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def created_at(self) -> datetime | None:
        return self.metadata.creation_timestamp

    @property
    def is_ok(self) -> bool:
        return self.state == AnchorState.OK
