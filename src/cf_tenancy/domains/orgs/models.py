"""Pydantic models for organizations."""

from datetime import datetime

from pydantic import BaseModel, Field

from cf_tenancy.domains.hierarchy.models import Anchor
from cf_tenancy.utils.labels import CFAnnotations


class OrgRecord(BaseModel):
    """Organization representation."""

    guid: str = Field(..., description="Org GUID, also the org namespace name")
    name: str = Field(..., description="Display name")
    suspended: bool = Field(False, description="Whether the org is suspended")
    labels: dict[str, str] = Field(default_factory=dict, description="User labels")
    annotations: dict[str, str] = Field(default_factory=dict, description="User annotations")
    created_at: datetime | None = Field(None, description="When the org was created")
    updated_at: datetime | None = Field(None, description="When the org was last updated")

    @classmethod
    def from_anchor(cls, anchor: Anchor, hidden_labels: frozenset[str] = frozenset()) -> "OrgRecord":
        """Create from the org's backing object.

        Args:
            anchor: Snapshot of the backing object.
            hidden_labels: Internal label keys to leave out of ``labels``.
        """
        return cls(
            guid=anchor.name,
            name=anchor.display_name or "",
            suspended=anchor.suspended,
            labels={k: v for k, v in anchor.metadata.labels.items() if k not in hidden_labels},
            annotations={
                k: v
                for k, v in anchor.metadata.annotations.items()
                if k != CFAnnotations.SUSPENDED
            },
            created_at=anchor.created_at,
            updated_at=anchor.created_at,
        )


class CreateOrgMessage(BaseModel):
    """Request model for creating an organization."""

    name: str = Field(..., description="Org display name")
    suspended: bool = Field(False, description="Create the org suspended")
    labels: dict[str, str] = Field(default_factory=dict, description="Labels to set")
    annotations: dict[str, str] = Field(default_factory=dict, description="Annotations to set")


class ListOrgsMessage(BaseModel):
    """Filters for listing organizations. Empty filters match everything."""

    names: list[str] = Field(default_factory=list, description="Display names to match")
    guids: list[str] = Field(default_factory=list, description="GUIDs to match")


class DeleteOrgMessage(BaseModel):
    """Request model for deleting an organization."""

    guid: str = Field(..., description="Org GUID")
