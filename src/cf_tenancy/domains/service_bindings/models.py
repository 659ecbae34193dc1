"""Pydantic models for service bindings."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from cf_tenancy.domains.service_bindings.crds import ServiceBindingCRDs
from cf_tenancy.models.common import ResourceMetadata
from cf_tenancy.utils.labels import CFLabels

SERVICE_BINDING_TYPE_APP = "app"


class LastOperation(BaseModel):
    """Summary of the last operation on a binding."""

    type: str = Field(..., description="Operation type, e.g. 'create'")
    state: str = Field(..., description="Operation state, e.g. 'succeeded'")
    description: str | None = Field(None, description="Optional detail")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ServiceBindingRecord(BaseModel):
    """Service binding representation."""

    guid: str = Field(..., description="Binding GUID")
    type: str = Field(SERVICE_BINDING_TYPE_APP, description="Binding type")
    name: str | None = Field(None, description="Optional display name")
    app_guid: str = Field(..., description="Bound application")
    service_instance_guid: str = Field(..., description="Bound service instance")
    space_guid: str = Field(..., description="Space (namespace) holding the binding")
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_operation: LastOperation

    @classmethod
    def from_resource(cls, obj: dict[str, Any]) -> "ServiceBindingRecord":
        """Create from a raw CFServiceBinding object.

        Credential projection is reconciled elsewhere, so the create is
        always reported as succeeded.
        """
        metadata = ResourceMetadata.from_k8s_metadata(obj["metadata"])
        spec = obj.get("spec") or {}
        created_at = metadata.creation_timestamp
        updated_at = metadata.last_updated

        return cls(
            guid=metadata.name,
            name=spec.get("name"),
            app_guid=(spec.get("appRef") or {}).get("name", ""),
            service_instance_guid=(spec.get("service") or {}).get("name", ""),
            space_guid=metadata.namespace or "",
            created_at=created_at,
            updated_at=updated_at,
            last_operation=LastOperation(
                type="create",
                state="succeeded",
                created_at=created_at,
                updated_at=updated_at,
            ),
        )


class CreateServiceBindingMessage(BaseModel):
    """Request model for creating a service binding."""

    app_guid: str = Field(..., description="Application to bind")
    service_instance_guid: str = Field(..., description="Service instance to bind")
    space_guid: str = Field(..., description="Space holding both")
    name: str | None = Field(None, description="Optional binding name")

    def to_resource(self, guid: str) -> dict[str, Any]:
        """Build the CFServiceBinding object for this request."""
        spec: dict[str, Any] = {
            "service": {
                "kind": ServiceBindingCRDs.SERVICE_INSTANCE.kind,
                "apiVersion": ServiceBindingCRDs.SERVICE_INSTANCE.api_version,
                "name": self.service_instance_guid,
            },
            "appRef": {"name": self.app_guid},
        }
        if self.name is not None:
            spec["name"] = self.name

        return {
            "apiVersion": ServiceBindingCRDs.SERVICE_BINDING.api_version,
            "kind": ServiceBindingCRDs.SERVICE_BINDING.kind,
            "metadata": {
                "name": guid,
                "namespace": self.space_guid,
                "labels": CFLabels.provisioned_service_labels(),
            },
            "spec": spec,
        }


class ListServiceBindingsMessage(BaseModel):
    """Filters for listing bindings. Empty filters match everything."""

    app_guids: list[str] = Field(default_factory=list, description="Apps to match")
    service_instance_guids: list[str] = Field(
        default_factory=list, description="Service instances to match"
    )
