"""Wiring of the tenancy repositories around one privileged client."""

from __future__ import annotations

import logging

from cf_tenancy.authorization.identity import IdentityProvider
from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
from cf_tenancy.clients.base import K8sClient
from cf_tenancy.clients.factory import UserClientFactory
from cf_tenancy.config import TenancyConfig, get_config
from cf_tenancy.domains.hierarchy.provisioner import AnchorProvisioner
from cf_tenancy.domains.namespaces.retriever import NamespaceRetriever
from cf_tenancy.domains.orgs.repository import OrgRepository, org_backing_resource
from cf_tenancy.domains.service_bindings.repository import ServiceBindingRepository
from cf_tenancy.domains.spaces.repository import SpaceRepository

logger = logging.getLogger(__name__)


class TenancyService:
    """Owns the privileged client and the repositories built on it."""

    def __init__(self, config: TenancyConfig | None = None, k8s: K8sClient | None = None) -> None:
        self._config = config or get_config()
        self._k8s_client = k8s
        self._orgs: OrgRepository | None = None
        self._spaces: SpaceRepository | None = None
        self._service_bindings: ServiceBindingRepository | None = None

    @property
    def config(self) -> TenancyConfig:
        """Get service configuration."""
        return self._config

    @property
    def k8s(self) -> K8sClient:
        """Get the privileged Kubernetes client.

        Raises:
            RuntimeError: If the service is not started.
        """
        if self._k8s_client is None:
            raise RuntimeError("Service not started. K8s client not available.")
        return self._k8s_client

    @property
    def orgs(self) -> OrgRepository:
        if self._orgs is None:
            raise RuntimeError("Service not started.")
        return self._orgs

    @property
    def spaces(self) -> SpaceRepository:
        if self._spaces is None:
            raise RuntimeError("Service not started.")
        return self._spaces

    @property
    def service_bindings(self) -> ServiceBindingRepository:
        if self._service_bindings is None:
            raise RuntimeError("Service not started.")
        return self._service_bindings

    def start(self) -> None:
        """Connect the privileged client and build the repositories."""
        if self._k8s_client is None:
            self._k8s_client = K8sClient(self._config)
        if not self._k8s_client.is_connected:
            self._k8s_client.connect()

        k8s = self._k8s_client
        root = self._config.root_namespace
        org_backing = org_backing_resource(self._config.org_backing)

        namespace_permissions = NamespacePermissions(k8s, IdentityProvider(k8s), root)
        user_clients = UserClientFactory(k8s, self._config)
        provisioner = AnchorProvisioner(
            k8s,
            namespace_permissions,
            timeout=self._config.provision_timeout,
            poll_interval=self._config.permission_poll_interval,
        )

        self._orgs = OrgRepository(
            k8s, user_clients, namespace_permissions, provisioner, root, backing=org_backing
        )
        self._spaces = SpaceRepository(
            k8s, user_clients, namespace_permissions, provisioner, self._orgs, root
        )
        self._service_bindings = ServiceBindingRepository(
            user_clients, namespace_permissions, NamespaceRetriever(k8s, org_crd=org_backing.crd)
        )
        logger.info(
            f"Tenancy service ready (root namespace {root}, "
            f"org backing {self._config.org_backing.value})"
        )

    def stop(self) -> None:
        """Disconnect the privileged client."""
        if self._k8s_client is not None:
            self._k8s_client.disconnect()
        self._orgs = None
        self._spaces = None
        self._service_bindings = None

    def __enter__(self) -> TenancyService:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
