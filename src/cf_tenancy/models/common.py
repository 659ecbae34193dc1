"""Common Pydantic models shared across tenancy resources."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ResourceMetadata(BaseModel):
    """Common metadata for Kubernetes resources."""

    name: str = Field(..., description="Resource name")
    namespace: str | None = Field(None, description="Resource namespace")
    uid: str | None = Field(None, description="Kubernetes UID")
    creation_timestamp: datetime | None = Field(None, description="When the resource was created")
    labels: dict[str, str] = Field(default_factory=dict, description="Resource labels")
    annotations: dict[str, str] = Field(default_factory=dict, description="Resource annotations")
    managed_field_times: list[datetime] = Field(
        default_factory=list, description="Timestamps of server-side field updates"
    )

    @property
    def last_updated(self) -> datetime | None:
        """Latest managed-field update, falling back to the creation time."""
        if self.managed_field_times:
            return max(self.managed_field_times)
        return self.creation_timestamp

    @classmethod
    def from_k8s_metadata(cls, metadata: dict[str, Any]) -> "ResourceMetadata":
        """Create from the metadata block of a raw Kubernetes object.

        Raises:
            KeyError: If the object has no name.
        """
        return cls(
            name=metadata["name"],
            namespace=metadata.get("namespace"),
            uid=metadata.get("uid"),
            creation_timestamp=metadata.get("creationTimestamp"),
            labels=metadata.get("labels") or {},
            annotations=metadata.get("annotations") or {},
            managed_field_times=[
                entry["time"] for entry in metadata.get("managedFields") or [] if entry.get("time")
            ],
        )


class Condition(BaseModel):
    """Kubernetes-style condition."""

    type: str = Field(..., description="Condition type")
    status: str = Field(..., description="Condition status (True, False, Unknown)")
    reason: str | None = Field(None, description="Machine-readable reason")
    message: str | None = Field(None, description="Human-readable message")

    @property
    def is_true(self) -> bool:
        """Check if condition status is True."""
        return self.status == "True"

    @classmethod
    def from_k8s_condition(cls, condition: dict[str, Any]) -> "Condition":
        """Create from a raw condition entry."""
        return cls(
            type=condition["type"],
            status=condition["status"],
            reason=condition.get("reason"),
            message=condition.get("message"),
        )


def find_condition(conditions: list[dict[str, Any]] | None, type_: str) -> Condition | None:
    """Return the condition of the given type, if present."""
    for cond in conditions or []:
        if cond.get("type") == type_:
            return Condition.from_k8s_condition(cond)
    return None
