"""Synchronous provisioning of child namespaces.

Creating an org or space namespace converges in stages on the cluster: the
backing object is admitted, the hierarchy controller materializes the child
namespace, and RBAC is propagated into it. :class:`AnchorProvisioner` turns
that into one blocking call with two bounded waits:

1. watch the backing object (privileged client) until it is ready;
2. poll the caller's authorized namespaces until the new one shows up.

Each wait has its own deadline of ``provision_timeout`` seconds. A timeout
is fatal for the call and nothing is rolled back; the generated name is
unique, so a retry never collides with the leftover object.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from cf_tenancy.domains.hierarchy.models import Anchor
from cf_tenancy.utils.errors import (
    ConvergenceTimeoutError,
    OperationCancelledError,
    PermissionPropagationTimeoutError,
    TenancyError,
    TransportError,
    ValidationError,
    add_context,
)
from cf_tenancy.utils.wait import WaitTimeout, poll_until, watch_until

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity
    from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
    from cf_tenancy.clients.base import K8sClient
    from cf_tenancy.domains.hierarchy.resources import ProvisionableResource

logger = logging.getLogger(__name__)

ORG_RESOURCE_TYPE = "Org"
SPACE_RESOURCE_TYPE = "Space"

# Watch event types that carry a usable snapshot of the object
_SNAPSHOT_EVENTS = frozenset({"ADDED", "MODIFIED"})


class AnchorProvisioner:
    """Creates namespace-scoping objects and waits for them to become usable."""

    def __init__(
        self,
        privileged: K8sClient,
        namespace_permissions: NamespacePermissions,
        timeout: float,
        poll_interval: float = 0.5,
    ) -> None:
        self._privileged = privileged
        self._ns_perms = namespace_permissions
        self._timeout = timeout
        self._poll_interval = poll_interval

    def provision(
        self,
        caller: CallerIdentity,
        user_client: K8sClient,
        resource: ProvisionableResource,
        parent_namespace: str,
        name: str,
        display_name: str,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        suspended: bool = False,
        cancel: threading.Event | None = None,
    ) -> Anchor:
        """Create a child namespace and block until the caller can use it.

        Args:
            caller: Identity whose permissions are awaited.
            user_client: Client acting as the caller; used for the create.
            resource: Backing representation to create.
            parent_namespace: Namespace the backing object is created in.
            name: Name of the object and of the resulting namespace.
            display_name: Human-readable org/space name.
            labels: Extra labels for the backing object.
            annotations: Extra annotations for the backing object.
            suspended: Whether to mark the org as suspended.
            cancel: Optional event aborting the waits when set.

        Returns:
            The ready snapshot of the backing object.

        Raises:
            ValidationError: If admission rejected the object.
            TransportError: If the watch could not be set up.
            ConvergenceTimeoutError: If the object never became ready.
            PermissionPropagationTimeoutError: If the caller never gained
                access to the new namespace.
            OperationCancelledError: If ``cancel`` was set.
        """
        body = resource.build_body(
            name, parent_namespace, display_name, labels, annotations, suspended
        )
        try:
            user_client.create(resource.crd, body=body, namespace=parent_namespace)
        except ValidationError:
            raise
        except TenancyError as e:
            raise add_context(e, f"failed to create {resource.crd.kind.lower()}")

        logger.info(
            f"Created {resource.crd.kind} {parent_namespace}/{name}, waiting for it to become ready"
        )
        anchor = self._wait_for_ready(resource, parent_namespace, name, cancel)
        self._wait_for_permissions(caller, resource.resource_type, name, cancel)
        return anchor

    def _wait_for_ready(
        self,
        resource: ProvisionableResource,
        parent_namespace: str,
        name: str,
        cancel: threading.Event | None,
    ) -> Anchor:
        def open_stream(timeout_seconds: float) -> Any:
            return self._privileged.watch(
                resource.crd,
                namespace=parent_namespace,
                field_selector=f"metadata.name={name}",
                timeout_seconds=timeout_seconds,
            )

        def decode(event: dict[str, Any]) -> Anchor | None:
            if event.get("type") not in _SNAPSHOT_EVENTS:
                return None
            raw = event.get("raw_object") or event.get("object")
            try:
                if not isinstance(raw, dict):
                    raw = raw.to_dict()
                return resource.decode(raw)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping undecodable {resource.crd.kind} watch event: {e}")
                return None

        try:
            anchor = watch_until(
                open_stream, decode, resource.is_ready, self._timeout, cancel=cancel
            )
        except WaitTimeout as e:
            raise ConvergenceTimeoutError(resource.resource_type, name, e.elapsed) from e
        except OperationCancelledError:
            raise
        except TenancyError as e:
            raise TransportError(
                f"failed to set up watch on {resource.crd.plural}: {e.message}"
            ) from e

        logger.info(f"{resource.crd.kind} {parent_namespace}/{name} is ready")
        return anchor

    def _wait_for_permissions(
        self,
        caller: CallerIdentity,
        resource_type: str,
        namespace: str,
        cancel: threading.Event | None,
    ) -> None:
        if resource_type == ORG_RESOURCE_TYPE:
            get_authorized = self._ns_perms.get_authorized_org_namespaces
        else:
            get_authorized = self._ns_perms.get_authorized_space_namespaces

        def caller_sees_namespace() -> bool:
            visible = namespace in get_authorized(caller)
            if not visible:
                logger.debug(f"Caller cannot see namespace {namespace} yet")
            return visible

        try:
            elapsed = poll_until(
                caller_sees_namespace, self._poll_interval, self._timeout, cancel=cancel
            )
        except WaitTimeout as e:
            raise PermissionPropagationTimeoutError(resource_type, namespace, e.elapsed) from e

        logger.info(f"Permissions propagated to namespace {namespace} after {elapsed:.3f}s")
