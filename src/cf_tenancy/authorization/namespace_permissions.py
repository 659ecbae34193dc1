"""Per-caller namespace visibility.

A namespace is visible to a caller when it sits at the org (depth 1) or space
(depth 2) level of the HNC tree under the root namespace and at least one of
its RoleBindings names the caller as a subject. The result is recomputed on
every call; it may lag freshly granted roles while HNC propagates them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cf_tenancy.utils.errors import TenancyError, TransportError
from cf_tenancy.utils.labels import CFLabels

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity, IdentityProvider
    from cf_tenancy.clients.base import K8sClient

logger = logging.getLogger(__name__)


class NamespacePermissions:
    """Computes the org and space namespaces a caller may see."""

    def __init__(
        self,
        privileged: K8sClient,
        identity_provider: IdentityProvider,
        root_namespace: str,
    ) -> None:
        self._privileged = privileged
        self._identity_provider = identity_provider
        self._root_namespace = root_namespace

    def get_authorized_org_namespaces(self, caller: CallerIdentity) -> set[str]:
        """Org namespaces visible to the caller."""
        return self._get_authorized_namespaces(caller, CFLabels.ORG_DEPTH, "Org")

    def get_authorized_space_namespaces(self, caller: CallerIdentity) -> set[str]:
        """Space namespaces visible to the caller."""
        return self._get_authorized_namespaces(caller, CFLabels.SPACE_DEPTH, "Space")

    def _get_authorized_namespaces(
        self,
        caller: CallerIdentity,
        depth: str,
        resource_type: str,
    ) -> set[str]:
        identity = self._identity_provider.get_identity(caller)

        selector = CFLabels.filter_selector(**{CFLabels.depth_label(self._root_namespace): depth})
        try:
            namespaces = self._privileged.list_namespaces(label_selector=selector)
            role_bindings = self._privileged.list_role_bindings()
        except TenancyError as e:
            raise TransportError(
                f"failed to list {resource_type.lower()} namespaces for user role bindings: {e}"
            ) from e

        candidates = {ns.metadata.name for ns in namespaces}
        authorized = set()
        for binding in role_bindings:
            namespace = binding.metadata.namespace
            if namespace not in candidates or namespace in authorized:
                continue
            if any(identity.matches_subject(s) for s in binding.subjects or []):
                authorized.add(namespace)

        logger.debug(
            f"{identity.name} can see {len(authorized)}/{len(candidates)} "
            f"{resource_type.lower()} namespaces"
        )
        return authorized
