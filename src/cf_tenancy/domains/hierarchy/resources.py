"""Cluster objects that can back an org or a space.

The provisioning protocol only needs to know how to build an object, how to
read a snapshot of it back, and when that snapshot counts as ready. Each
backing representation implements :class:`ProvisionableResource`, so the
wait protocol in :mod:`cf_tenancy.domains.hierarchy.provisioner` does not
depend on which one is in use.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from cf_tenancy.clients.base import CRDDefinition
from cf_tenancy.domains.hierarchy.crds import HierarchyCRDs
from cf_tenancy.domains.hierarchy.models import Anchor, AnchorState
from cf_tenancy.models.common import ResourceMetadata, find_condition
from cf_tenancy.utils.errors import NotFoundError, TenancyError, add_context
from cf_tenancy.utils.labels import CFAnnotations

if TYPE_CHECKING:
    from cf_tenancy.clients.base import K8sClient

logger = logging.getLogger(__name__)


class ProvisionableResource(ABC):
    """A cluster object whose readiness means a child namespace exists."""

    def __init__(self, crd: CRDDefinition, resource_type: str) -> None:
        self.crd = crd
        self.resource_type = resource_type
        # Label keys set by this layer rather than by users
        self.internal_labels: frozenset[str] = frozenset()

    def build_body(
        self,
        name: str,
        parent_namespace: str,
        display_name: str,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        suspended: bool = False,
    ) -> dict[str, Any]:
        """Build the object to submit for a new child namespace."""
        annotations = dict(annotations or {})
        if suspended:
            annotations[CFAnnotations.SUSPENDED] = "true"

        return {
            "apiVersion": self.crd.api_version,
            "kind": self.crd.kind,
            "metadata": {
                "name": name,
                "namespace": parent_namespace,
                "labels": dict(labels or {}),
                "annotations": annotations,
            },
        }

    def decode(self, obj: dict[str, Any]) -> Anchor:
        """Read a snapshot of the object.

        Raises:
            ValueError: If the object is of another kind.
            KeyError, TypeError: If the object is malformed.
        """
        kind = obj.get("kind")
        if kind is not None and kind != self.crd.kind:
            raise ValueError(f"expected {self.crd.kind}, got {kind}")

        metadata = ResourceMetadata.from_k8s_metadata(obj["metadata"])
        return Anchor(
            metadata=metadata,
            display_name=self._display_name(obj, metadata),
            state=self._state(obj),
            suspended=CFAnnotations.is_suspended(metadata.annotations),
        )

    def is_ready(self, anchor: Anchor) -> bool:
        """Whether the child namespace has been materialized."""
        return anchor.is_ok

    def after_create(self, user_client: K8sClient, anchor: Anchor) -> None:
        """Hook run with the caller's client once the namespace is usable."""

    @abstractmethod
    def check_deletable(self, privileged: K8sClient, name: str, parent_namespace: str) -> None:
        """Verify the object was fully provisioned before deleting it.

        Raises:
            NotFoundError: If it never was.
        """

    @abstractmethod
    def _display_name(self, obj: dict[str, Any], metadata: ResourceMetadata) -> str | None: ...

    @abstractmethod
    def _state(self, obj: dict[str, Any]) -> AnchorState: ...


class SubnamespaceAnchorResource(ProvisionableResource):
    """HNC SubnamespaceAnchor, carrying the display name as a label.

    With ``cascade_deletion`` set, the new namespace's HierarchyConfiguration
    is patched so that deleting the anchor removes the whole subtree.
    """

    def __init__(self, resource_type: str, name_label: str, cascade_deletion: bool = False) -> None:
        super().__init__(HierarchyCRDs.SUBNAMESPACE_ANCHOR, resource_type)
        self.name_label = name_label
        self.cascade_deletion = cascade_deletion
        self.internal_labels = frozenset({name_label})

    def build_body(
        self,
        name: str,
        parent_namespace: str,
        display_name: str,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        suspended: bool = False,
    ) -> dict[str, Any]:
        body = super().build_body(name, parent_namespace, display_name, labels, annotations, suspended)
        body["metadata"]["labels"][self.name_label] = display_name
        return body

    def _display_name(self, obj: dict[str, Any], metadata: ResourceMetadata) -> str | None:
        return metadata.labels.get(self.name_label)

    def _state(self, obj: dict[str, Any]) -> AnchorState:
        state = (obj.get("status") or {}).get("status")
        if not state:
            return AnchorState.PENDING
        return AnchorState(state)

    def after_create(self, user_client: K8sClient, anchor: Anchor) -> None:
        if not self.cascade_deletion:
            return
        try:
            user_client.patch(
                HierarchyCRDs.HIERARCHY_CONFIGURATION,
                HierarchyCRDs.HIERARCHY_CONFIGURATION_NAME,
                body={"spec": {"allowCascadingDeletion": True}},
                namespace=anchor.name,
            )
        except TenancyError as e:
            raise add_context(e, "failed to update hierarchy configuration")
        logger.debug(f"Enabled cascading deletion for namespace {anchor.name}")

    def check_deletable(self, privileged: K8sClient, name: str, parent_namespace: str) -> None:
        try:
            privileged.get(
                HierarchyCRDs.HIERARCHY_CONFIGURATION,
                HierarchyCRDs.HIERARCHY_CONFIGURATION_NAME,
                namespace=name,
            )
        except NotFoundError as e:
            raise NotFoundError(self.resource_type, name) from e


class CFOrgResource(ProvisionableResource):
    """First-class CFOrg object reconciled by its own controller.

    Ready when its ``Ready`` condition is True. The org controller owns the
    namespace and its deletion, so no cascade patch is issued.
    """

    def __init__(self) -> None:
        super().__init__(HierarchyCRDs.CF_ORG, "Org")

    def build_body(
        self,
        name: str,
        parent_namespace: str,
        display_name: str,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        suspended: bool = False,
    ) -> dict[str, Any]:
        body = super().build_body(name, parent_namespace, display_name, labels, annotations, suspended)
        body["spec"] = {"displayName": display_name}
        return body

    def _display_name(self, obj: dict[str, Any], metadata: ResourceMetadata) -> str | None:
        return (obj.get("spec") or {}).get("displayName")

    def _state(self, obj: dict[str, Any]) -> AnchorState:
        ready = find_condition((obj.get("status") or {}).get("conditions"), "Ready")
        if ready is not None and ready.is_true:
            return AnchorState.OK
        return AnchorState.PENDING

    def check_deletable(self, privileged: K8sClient, name: str, parent_namespace: str) -> None:
        try:
            privileged.get(self.crd, name, namespace=parent_namespace)
        except NotFoundError as e:
            raise NotFoundError(self.resource_type, name) from e


def decode_all(resource: ProvisionableResource, objects: list[dict[str, Any]]) -> list[Anchor]:
    """Decode listed objects, dropping any that are malformed."""
    anchors = []
    for obj in objects:
        try:
            anchors.append(resource.decode(obj))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed {resource.crd.kind}: {e}")
    return anchors
