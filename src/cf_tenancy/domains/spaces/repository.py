"""Space repository.

Spaces are namespaces one level below an org namespace, each backed by a
SubnamespaceAnchor in the org namespace. Creating a space also bootstraps
the service accounts that the build and run subsystems expect to find in
every space namespace.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING

from cf_tenancy.domains.hierarchy.provisioner import SPACE_RESOURCE_TYPE
from cf_tenancy.domains.hierarchy.resources import SubnamespaceAnchorResource, decode_all
from cf_tenancy.domains.spaces.models import (
    CreateSpaceMessage,
    DeleteSpaceMessage,
    ListSpacesMessage,
    SpaceRecord,
)
from cf_tenancy.utils.errors import NotFoundError, TenancyError, add_context
from cf_tenancy.utils.filters import filter_authorized, match_filter, to_set
from cf_tenancy.utils.labels import CFLabels

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity
    from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
    from cf_tenancy.clients.base import K8sClient
    from cf_tenancy.clients.factory import UserClientFactory
    from cf_tenancy.domains.hierarchy.models import Anchor
    from cf_tenancy.domains.hierarchy.provisioner import AnchorProvisioner
    from cf_tenancy.domains.orgs.repository import OrgRepository

logger = logging.getLogger(__name__)

SPACE_PREFIX = "cf-space-"

# Used by the build subsystem; pulls images with the space's registry credentials
KPACK_SERVICE_ACCOUNT = "kpack-service-account"
# Used by the workload runtime
EIRINI_SERVICE_ACCOUNT = "eirini"


class SpaceRepository:
    """Create, list, get and delete spaces."""

    def __init__(
        self,
        privileged: K8sClient,
        user_clients: UserClientFactory,
        namespace_permissions: NamespacePermissions,
        provisioner: AnchorProvisioner,
        orgs: OrgRepository,
        root_namespace: str,
    ) -> None:
        self._privileged = privileged
        self._user_clients = user_clients
        self._ns_perms = namespace_permissions
        self._provisioner = provisioner
        self._orgs = orgs
        self._root_namespace = root_namespace
        self._backing = SubnamespaceAnchorResource(SPACE_RESOURCE_TYPE, CFLabels.SPACE_NAME)

    def create_space(
        self,
        caller: CallerIdentity,
        message: CreateSpaceMessage,
        cancel: threading.Event | None = None,
    ) -> SpaceRecord:
        """Create a space in an org the caller can see.

        An org the caller cannot see is reported exactly like a missing one.
        Service account bootstrap failures abort the call without undoing the
        namespace.
        """
        try:
            self._orgs.get_org(caller, message.organization_guid)
        except TenancyError as e:
            raise add_context(e, "failed to get parent organization")

        guid = SPACE_PREFIX + str(uuid.uuid4())
        with self._user_clients.build_client(caller) as user_client:
            anchor = self._provisioner.provision(
                caller,
                user_client,
                self._backing,
                parent_namespace=message.organization_guid,
                name=guid,
                display_name=message.name,
                cancel=cancel,
            )

        self._create_service_account(
            KPACK_SERVICE_ACCOUNT, guid, [message.image_registry_credentials]
        )
        self._create_service_account(EIRINI_SERVICE_ACCOUNT, guid)

        logger.info(f"Created space {message.name!r} as {guid} in org {message.organization_guid}")
        return SpaceRecord.from_anchor(anchor, self._backing.internal_labels)

    def _create_service_account(
        self,
        name: str,
        namespace: str,
        image_pull_secrets: list[str] | None = None,
    ) -> None:
        try:
            self._privileged.create_service_account(name, namespace, image_pull_secrets)
        except TenancyError as e:
            raise add_context(e, f"failed to create service account {name}")

    def list_spaces(self, caller: CallerIdentity, message: ListSpacesMessage) -> list[SpaceRecord]:
        """List ready spaces visible to the caller that match the filters.

        Reads every anchor in the cluster once per call.
        """
        try:
            objects = self._privileged.list_resources(self._backing.crd)
        except TenancyError as e:
            raise add_context(e, "failed to list spaces")
        anchors = decode_all(self._backing, objects)

        org_filter = to_set(message.organization_guids)
        org_guids = {
            guid
            for guid in self._list_org_guids(anchors)
            if match_filter(org_filter, guid)
        }

        name_filter = to_set(message.names)
        guid_filter = to_set(message.guids)
        records = [
            SpaceRecord.from_anchor(anchor, self._backing.internal_labels)
            for anchor in anchors
            if anchor.is_ok
            and match_filter(name_filter, anchor.display_name)
            and match_filter(guid_filter, anchor.name)
            and anchor.namespace in org_guids
        ]

        authorized = self._ns_perms.get_authorized_space_namespaces(caller)
        return filter_authorized(records, authorized, key=lambda space: space.guid)

    def _list_org_guids(self, anchors: list[Anchor]) -> set[str]:
        org_backing = self._orgs.backing
        if org_backing.crd == self._backing.crd:
            return {a.name for a in anchors if a.namespace == self._root_namespace}

        try:
            objects = self._privileged.list_resources(
                org_backing.crd, namespace=self._root_namespace
            )
        except TenancyError as e:
            raise add_context(e, "failed to list orgs")
        return {org.name for org in decode_all(org_backing, objects)}

    def get_space(self, caller: CallerIdentity, guid: str) -> SpaceRecord:
        """Get a single space.

        Raises:
            NotFoundError: If the space does not exist, is not ready, or is
                not visible to the caller.
        """
        spaces = self.list_spaces(caller, ListSpacesMessage(guids=[guid]))
        if not spaces:
            raise NotFoundError(SPACE_RESOURCE_TYPE, guid)
        return spaces[0]

    def delete_space(self, caller: CallerIdentity, message: DeleteSpaceMessage) -> None:
        """Delete a space's anchor as the caller."""
        self._backing.check_deletable(self._privileged, message.guid, message.organization_guid)

        with self._user_clients.build_client(caller) as user_client:
            user_client.delete(
                self._backing.crd, message.guid, namespace=message.organization_guid
            )

        logger.info(f"Deleted space {message.guid} from org {message.organization_guid}")
