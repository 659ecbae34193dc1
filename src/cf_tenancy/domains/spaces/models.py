"""Pydantic models for spaces."""

from datetime import datetime

from pydantic import BaseModel, Field

from cf_tenancy.domains.hierarchy.models import Anchor


class SpaceRecord(BaseModel):
    """Space representation."""

    guid: str = Field(..., description="Space GUID, also the space namespace name")
    name: str = Field(..., description="Display name")
    organization_guid: str = Field(..., description="GUID of the owning org")
    labels: dict[str, str] = Field(default_factory=dict, description="User labels")
    annotations: dict[str, str] = Field(default_factory=dict, description="User annotations")
    created_at: datetime | None = Field(None, description="When the space was created")
    updated_at: datetime | None = Field(None, description="When the space was last updated")

    @classmethod
    def from_anchor(cls, anchor: Anchor, hidden_labels: frozenset[str] = frozenset()) -> "SpaceRecord":
        """Create from the space's SubnamespaceAnchor."""
        return cls(
            guid=anchor.name,
            name=anchor.display_name or "",
            organization_guid=anchor.namespace or "",
            labels={k: v for k, v in anchor.metadata.labels.items() if k not in hidden_labels},
            annotations=anchor.metadata.annotations,
            created_at=anchor.created_at,
            updated_at=anchor.created_at,
        )


class CreateSpaceMessage(BaseModel):
    """Request model for creating a space."""

    name: str = Field(..., description="Space display name")
    organization_guid: str = Field(..., description="GUID of the parent org")
    image_registry_credentials: str = Field(
        ..., description="Name of the image pull secret used by the build service account"
    )


class ListSpacesMessage(BaseModel):
    """Filters for listing spaces. Empty filters match everything."""

    names: list[str] = Field(default_factory=list, description="Display names to match")
    guids: list[str] = Field(default_factory=list, description="GUIDs to match")
    organization_guids: list[str] = Field(default_factory=list, description="Parent org GUIDs")


class DeleteSpaceMessage(BaseModel):
    """Request model for deleting a space."""

    guid: str = Field(..., description="Space GUID")
    organization_guid: str = Field(..., description="GUID of the parent org")
