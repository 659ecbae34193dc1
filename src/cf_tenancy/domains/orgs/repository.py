"""Organization repository.

Orgs are namespaces directly under the root namespace. Writes go through the
caller's own client; reads go through the privileged client and are then
narrowed to the org namespaces the caller is authorized to see.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING

from cf_tenancy.config import OrgBacking
from cf_tenancy.domains.hierarchy.provisioner import ORG_RESOURCE_TYPE
from cf_tenancy.domains.hierarchy.resources import (
    CFOrgResource,
    ProvisionableResource,
    SubnamespaceAnchorResource,
    decode_all,
)
from cf_tenancy.domains.orgs.models import (
    CreateOrgMessage,
    DeleteOrgMessage,
    ListOrgsMessage,
    OrgRecord,
)
from cf_tenancy.utils.errors import NotFoundError, TenancyError, add_context
from cf_tenancy.utils.filters import filter_authorized, match_filter, to_set
from cf_tenancy.utils.labels import CFLabels

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity
    from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
    from cf_tenancy.clients.base import K8sClient
    from cf_tenancy.clients.factory import UserClientFactory
    from cf_tenancy.domains.hierarchy.provisioner import AnchorProvisioner

logger = logging.getLogger(__name__)

ORG_PREFIX = "cf-org-"


def org_backing_resource(backing: OrgBacking) -> ProvisionableResource:
    """Return the backing representation for orgs."""
    if backing == OrgBacking.CF_ORG:
        return CFOrgResource()
    return SubnamespaceAnchorResource(ORG_RESOURCE_TYPE, CFLabels.ORG_NAME, cascade_deletion=True)


class OrgRepository:
    """Create, list, get and delete organizations."""

    def __init__(
        self,
        privileged: K8sClient,
        user_clients: UserClientFactory,
        namespace_permissions: NamespacePermissions,
        provisioner: AnchorProvisioner,
        root_namespace: str,
        backing: ProvisionableResource | None = None,
    ) -> None:
        self._privileged = privileged
        self._user_clients = user_clients
        self._ns_perms = namespace_permissions
        self._provisioner = provisioner
        self._root_namespace = root_namespace
        self._backing = backing or org_backing_resource(OrgBacking.ANCHOR)

    @property
    def backing(self) -> ProvisionableResource:
        """Representation backing each org."""
        return self._backing

    def create_org(
        self,
        caller: CallerIdentity,
        message: CreateOrgMessage,
        cancel: threading.Event | None = None,
    ) -> OrgRecord:
        """Create an org and wait until the caller can use its namespace."""
        guid = ORG_PREFIX + str(uuid.uuid4())

        with self._user_clients.build_client(caller) as user_client:
            anchor = self._provisioner.provision(
                caller,
                user_client,
                self._backing,
                parent_namespace=self._root_namespace,
                name=guid,
                display_name=message.name,
                labels=message.labels,
                annotations=message.annotations,
                suspended=message.suspended,
                cancel=cancel,
            )
            self._backing.after_create(user_client, anchor)

        logger.info(f"Created org {message.name!r} as {guid}")
        return OrgRecord.from_anchor(anchor, self._backing.internal_labels)

    def list_orgs(self, caller: CallerIdentity, message: ListOrgsMessage) -> list[OrgRecord]:
        """List ready orgs visible to the caller that match the filters."""
        try:
            objects = self._privileged.list_resources(
                self._backing.crd, namespace=self._root_namespace
            )
        except TenancyError as e:
            raise add_context(e, "failed to list orgs")

        name_filter = to_set(message.names)
        guid_filter = to_set(message.guids)
        records = [
            OrgRecord.from_anchor(anchor, self._backing.internal_labels)
            for anchor in decode_all(self._backing, objects)
            if self._backing.is_ready(anchor)
            and match_filter(guid_filter, anchor.name)
            and match_filter(name_filter, anchor.display_name)
        ]

        authorized = self._ns_perms.get_authorized_org_namespaces(caller)
        return filter_authorized(records, authorized, key=lambda org: org.guid)

    def get_org(self, caller: CallerIdentity, guid: str) -> OrgRecord:
        """Get a single org.

        Raises:
            NotFoundError: If the org does not exist, is not ready, or is not
                visible to the caller.
        """
        orgs = self.list_orgs(caller, ListOrgsMessage(guids=[guid]))
        if not orgs:
            raise NotFoundError(ORG_RESOURCE_TYPE, guid)
        return orgs[0]

    def delete_org(self, caller: CallerIdentity, message: DeleteOrgMessage) -> None:
        """Delete an org as the caller.

        The namespace subtree goes with it through the cascade setting made at
        creation time.
        """
        self._backing.check_deletable(self._privileged, message.guid, self._root_namespace)

        with self._user_clients.build_client(caller) as user_client:
            user_client.delete(self._backing.crd, message.guid, namespace=self._root_namespace)

        logger.info(f"Deleted org {message.guid}")
