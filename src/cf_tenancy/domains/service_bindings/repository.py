"""Service binding repository.

Bindings are plain objects in a space namespace; nothing has to converge
before they are usable, so every operation is a direct call made with the
caller's own client.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from cf_tenancy.domains.service_bindings.crds import ServiceBindingCRDs
from cf_tenancy.domains.service_bindings.models import (
    CreateServiceBindingMessage,
    ListServiceBindingsMessage,
    ServiceBindingRecord,
)
from cf_tenancy.utils.errors import (
    ForbiddenError,
    NotFoundError,
    TenancyError,
    add_context,
    forbidden_as_not_found,
)
from cf_tenancy.utils.filters import match_filter, to_set

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity
    from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
    from cf_tenancy.clients.factory import UserClientFactory
    from cf_tenancy.domains.namespaces.retriever import NamespaceRetriever

logger = logging.getLogger(__name__)

SERVICE_BINDING_RESOURCE_TYPE = "Service Binding"


def _app_guid(obj: dict[str, Any]) -> str | None:
    return ((obj.get("spec") or {}).get("appRef") or {}).get("name")


def _instance_guid(obj: dict[str, Any]) -> str | None:
    return ((obj.get("spec") or {}).get("service") or {}).get("name")


class ServiceBindingRepository:
    """Create, delete, look up and list service bindings."""

    def __init__(
        self,
        user_clients: UserClientFactory,
        namespace_permissions: NamespacePermissions,
        namespace_retriever: NamespaceRetriever,
    ) -> None:
        self._user_clients = user_clients
        self._ns_perms = namespace_permissions
        self._namespace_retriever = namespace_retriever

    def create_service_binding(
        self,
        caller: CallerIdentity,
        message: CreateServiceBindingMessage,
    ) -> ServiceBindingRecord:
        """Create a binding in the space namespace as the caller."""
        body = message.to_resource(str(uuid.uuid4()))

        with self._user_clients.build_client(caller) as user_client:
            created = user_client.create(
                ServiceBindingCRDs.SERVICE_BINDING, body=body, namespace=message.space_guid
            )

        logger.info(
            f"Bound app {message.app_guid} to service instance "
            f"{message.service_instance_guid} in {message.space_guid}"
        )
        return ServiceBindingRecord.from_resource(created)

    def delete_service_binding(self, caller: CallerIdentity, guid: str) -> None:
        """Delete a binding as the caller.

        Raises:
            NotFoundError: If the binding does not exist or the caller cannot
                see it; the two are not distinguished.
        """
        namespace = self._namespace_retriever.namespace_for(guid, SERVICE_BINDING_RESOURCE_TYPE)

        with self._user_clients.build_client(caller) as user_client:
            try:
                user_client.get(ServiceBindingCRDs.SERVICE_BINDING, guid, namespace=namespace)
            except (ForbiddenError, NotFoundError) as e:
                raise forbidden_as_not_found(e, SERVICE_BINDING_RESOURCE_TYPE, guid) from e

            user_client.delete(ServiceBindingCRDs.SERVICE_BINDING, guid, namespace=namespace)

        logger.info(f"Deleted service binding {guid} from {namespace}")

    def service_binding_exists(
        self,
        caller: CallerIdentity,
        space_guid: str,
        app_guid: str,
        service_instance_guid: str,
    ) -> bool:
        """Check whether the app is already bound to the instance in the space.

        Not atomic with a subsequent create.
        """
        with self._user_clients.build_client(caller) as user_client:
            bindings = user_client.list_resources(
                ServiceBindingCRDs.SERVICE_BINDING, namespace=space_guid
            )

        return any(
            _app_guid(b) == app_guid and _instance_guid(b) == service_instance_guid
            for b in bindings
        )

    def list_service_bindings(
        self,
        caller: CallerIdentity,
        message: ListServiceBindingsMessage,
    ) -> list[ServiceBindingRecord]:
        """List bindings in every space the caller can see, filtered by app and instance."""
        try:
            namespaces = self._ns_perms.get_authorized_space_namespaces(caller)
        except TenancyError as e:
            raise add_context(e, "failed to list namespaces for spaces with user role bindings")

        app_filter = to_set(message.app_guids)
        instance_filter = to_set(message.service_instance_guids)

        records = []
        with self._user_clients.build_client(caller) as user_client:
            for namespace in sorted(namespaces):
                try:
                    bindings = user_client.list_resources(
                        ServiceBindingCRDs.SERVICE_BINDING, namespace=namespace
                    )
                except ForbiddenError:
                    logger.warning(f"Not allowed to list service bindings in {namespace}, skipping")
                    continue
                except TenancyError as e:
                    raise add_context(
                        e, f"failed to list service bindings in namespace {namespace}"
                    )

                records.extend(
                    ServiceBindingRecord.from_resource(b)
                    for b in bindings
                    if match_filter(app_filter, _app_guid(b))
                    and match_filter(instance_filter, _instance_guid(b))
                )

        return records
