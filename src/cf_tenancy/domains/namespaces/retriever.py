"""Lookup of the namespace a resource lives in, by GUID."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cf_tenancy.domains.hierarchy.crds import HierarchyCRDs
from cf_tenancy.domains.service_bindings.crds import ServiceBindingCRDs
from cf_tenancy.utils.errors import NotFoundError, TenancyError, add_context

if TYPE_CHECKING:
    from cf_tenancy.clients.base import CRDDefinition, K8sClient


class NamespaceRetriever:
    """Finds which namespace holds the object with a given GUID."""

    def __init__(
        self,
        privileged: K8sClient,
        org_crd: CRDDefinition = HierarchyCRDs.SUBNAMESPACE_ANCHOR,
    ) -> None:
        self._privileged = privileged
        self._resource_crds: dict[str, CRDDefinition] = {
            "Org": org_crd,
            "Space": HierarchyCRDs.SUBNAMESPACE_ANCHOR,
            "Service Binding": ServiceBindingCRDs.SERVICE_BINDING,
        }

    def namespace_for(self, guid: str, resource_type: str) -> str:
        """Return the namespace of the ``resource_type`` object named ``guid``.

        Raises:
            NotFoundError: If no such object exists.
            TenancyError: If the resource type is unknown or the GUID is
                not unique.
        """
        crd = self._resource_crds.get(resource_type)
        if crd is None:
            raise TenancyError(f"resource type {resource_type!r} unknown")

        try:
            objects = self._privileged.list_resources(crd, field_selector=f"metadata.name={guid}")
        except TenancyError as e:
            raise add_context(e, f"failed to list {resource_type}")

        if not objects:
            raise NotFoundError(resource_type, guid)
        if len(objects) > 1:
            raise TenancyError(f"get-{resource_type}: duplicate records exist for {guid}")

        namespace = (objects[0].get("metadata") or {}).get("namespace")
        if not namespace:
            raise TenancyError(f"get-{resource_type}: resource {guid} has no namespace")
        return str(namespace)
