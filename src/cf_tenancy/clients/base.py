"""Kubernetes client wrapper used by the tenancy repositories.

A ``K8sClient`` is bound to one set of credentials. The process holds one
privileged instance for cluster-wide reads and watches, and builds one
instance per caller (see :mod:`cf_tenancy.clients.factory`) for every write,
so that admission and RBAC on the cluster govern mutations.

Custom resources are reached through the dynamic client and returned as plain
dicts. Every ``ApiException`` is translated into the tenancy error taxonomy
before it leaves this module.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import urllib3
from kubernetes import client, config, watch  # type: ignore[import-untyped]
from kubernetes.client import ApiClient, ApiException  # type: ignore[import-untyped]
from kubernetes.config import ConfigException  # type: ignore[import-untyped]
from kubernetes.dynamic import DynamicClient  # type: ignore[import-untyped]

from cf_tenancy.config import IN_CLUSTER_TOKEN_PATH, AuthMode, TenancyConfig, get_config
from cf_tenancy.utils.errors import ConfigurationError, TransportError, from_api_exception

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"


@dataclass(frozen=True)
class CRDDefinition:
    """Group/version/kind coordinates of a custom resource."""

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        """Full apiVersion string, e.g. 'hnc.x-k8s.io/v1alpha2'."""
        return f"{self.group}/{self.version}"


def _to_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()  # type: ignore[no-any-return]


class K8sClient:
    """Kubernetes client bound to a single identity."""

    def __init__(
        self,
        config_obj: TenancyConfig | None = None,
        api_client: ApiClient | None = None,
    ) -> None:
        self._config = config_obj or get_config()
        self._api_client = api_client
        self._core_v1: client.CoreV1Api | None = None
        self._rbac_v1: client.RbacAuthorizationV1Api | None = None
        self._auth_v1: client.AuthenticationV1Api | None = None
        self._dynamic_client: DynamicClient | None = None
        self._crd_cache: dict[str, Any] = {}

    def connect(self) -> None:
        """Load credentials (unless an ApiClient was supplied) and build the APIs."""
        if self._api_client is None:
            self._api_client = ApiClient(self._load_configuration())

        try:
            self._core_v1 = client.CoreV1Api(self._api_client)
            self._rbac_v1 = client.RbacAuthorizationV1Api(self._api_client)
            self._auth_v1 = client.AuthenticationV1Api(self._api_client)
            self._dynamic_client = DynamicClient(self._api_client)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise TransportError(f"failed to connect to cluster: {e}") from e
        logger.debug(f"Connected to {self._api_client.configuration.host}")

    def disconnect(self) -> None:
        """Release the underlying connection pool."""
        if self._api_client is not None:
            self._api_client.close()
        self._core_v1 = None
        self._rbac_v1 = None
        self._auth_v1 = None
        self._dynamic_client = None
        self._crd_cache.clear()

    def __enter__(self) -> K8sClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    def _load_configuration(self) -> client.Configuration:
        cfg = client.Configuration()
        mode = self._config.auth_mode
        if mode == AuthMode.AUTO:
            mode = AuthMode.IN_CLUSTER if IN_CLUSTER_TOKEN_PATH.exists() else AuthMode.KUBECONFIG

        try:
            if mode == AuthMode.IN_CLUSTER:
                config.load_incluster_config(client_configuration=cfg)
            else:
                config.load_kube_config(
                    config_file=str(self._config.effective_kubeconfig_path),
                    context=self._config.kubeconfig_context,
                    client_configuration=cfg,
                )
        except ConfigException as e:
            raise ConfigurationError(f"failed to load {mode.value} credentials: {e}") from e
        return cfg

    @property
    def is_connected(self) -> bool:
        """Whether connect() has completed."""
        return self._dynamic_client is not None

    @property
    def configuration(self) -> client.Configuration:
        """Connection settings, used to derive per-caller clients."""
        if self._api_client is None:
            raise RuntimeError("K8s client not connected")
        return self._api_client.configuration

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            raise RuntimeError("K8s client not connected")
        return self._core_v1

    @property
    def rbac_v1(self) -> client.RbacAuthorizationV1Api:
        if self._rbac_v1 is None:
            raise RuntimeError("K8s client not connected")
        return self._rbac_v1

    @property
    def auth_v1(self) -> client.AuthenticationV1Api:
        if self._auth_v1 is None:
            raise RuntimeError("K8s client not connected")
        return self._auth_v1

    @property
    def dynamic(self) -> DynamicClient:
        if self._dynamic_client is None:
            raise RuntimeError("K8s client not connected")
        return self._dynamic_client

    @contextmanager
    def _translate(
        self,
        resource_type: str,
        name: str | None = None,
        namespace: str | None = None,
    ) -> Iterator[None]:
        try:
            yield
        except ApiException as e:
            raise from_api_exception(e, resource_type, name, namespace) from e
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(f"{resource_type} request failed: {e}") from e

    # --- Custom resource operations ---

    def get_resource(self, crd: CRDDefinition) -> Any:
        """Resolve (and cache) the dynamic resource handle for a CRD."""
        cache_key = f"{crd.api_version}/{crd.plural}"
        if cache_key not in self._crd_cache:
            with self._translate(crd.kind):
                self._crd_cache[cache_key] = self.dynamic.resources.get(
                    api_version=crd.api_version, kind=crd.kind
                )
        return self._crd_cache[cache_key]

    def get(self, crd: CRDDefinition, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a single custom resource."""
        resource = self.get_resource(crd)
        with self._translate(crd.kind, name, namespace):
            return _to_dict(resource.get(name=name, namespace=namespace))

    def list_resources(
        self,
        crd: CRDDefinition,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List custom resources; namespace=None lists across all namespaces."""
        resource = self.get_resource(crd)
        with self._translate(crd.kind, namespace=namespace):
            result = resource.get(
                namespace=namespace,
                label_selector=label_selector,
                field_selector=field_selector,
            )
        return list(_to_dict(result).get("items") or [])

    def create(
        self,
        crd: CRDDefinition,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Create a custom resource and return the stored object."""
        resource = self.get_resource(crd)
        name = body.get("metadata", {}).get("name")
        with self._translate(crd.kind, name, namespace):
            return _to_dict(resource.create(body=body, namespace=namespace))

    def patch(
        self,
        crd: CRDDefinition,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Apply a JSON merge patch to a custom resource."""
        resource = self.get_resource(crd)
        with self._translate(crd.kind, name, namespace):
            return _to_dict(
                resource.patch(body=body, name=name, namespace=namespace, content_type=MERGE_PATCH)
            )

    def delete(self, crd: CRDDefinition, name: str, namespace: str | None = None) -> None:
        """Delete a custom resource."""
        resource = self.get_resource(crd)
        with self._translate(crd.kind, name, namespace):
            resource.delete(name=name, namespace=namespace)

    def watch(
        self,
        crd: CRDDefinition,
        namespace: str | None = None,
        field_selector: str | None = None,
        timeout_seconds: float | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Stream watch events for a custom resource.

        Each event is a dict with ``type``, ``object`` and ``raw_object``. The
        server-side watch is stopped when the generator is closed.

        ``timeout_seconds`` also bounds the read on the client side, so a
        fractional value ends a quiet stream on time; the stream then simply
        ends without an error.
        """
        resource = self.get_resource(crd)
        watcher = watch.Watch()
        kwargs: dict[str, Any] = {}
        if timeout_seconds is not None:
            kwargs["timeout_seconds"] = max(1, math.ceil(timeout_seconds))
            kwargs["_request_timeout"] = timeout_seconds
        try:
            with self._translate(crd.kind, namespace=namespace):
                try:
                    yield from watcher.stream(
                        resource.get,
                        namespace=namespace,
                        field_selector=field_selector,
                        serialize=False,
                        **kwargs,
                    )
                except urllib3.exceptions.ReadTimeoutError:
                    logger.debug(f"{crd.kind} watch window ended without events")
        finally:
            watcher.stop()

    # --- Core and RBAC operations ---

    def list_namespaces(self, label_selector: str | None = None) -> list[Any]:
        """List namespaces."""
        with self._translate("Namespace"):
            return list(self.core_v1.list_namespace(label_selector=label_selector).items)

    def list_role_bindings(self) -> list[Any]:
        """List RoleBindings across all namespaces."""
        with self._translate("RoleBinding"):
            return list(self.rbac_v1.list_role_binding_for_all_namespaces().items)

    def create_service_account(
        self,
        name: str,
        namespace: str,
        image_pull_secrets: list[str] | None = None,
    ) -> Any:
        """Create a ServiceAccount, optionally referencing registry credentials."""
        body = client.V1ServiceAccount(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        )
        if image_pull_secrets:
            body.image_pull_secrets = [
                client.V1LocalObjectReference(name=secret) for secret in image_pull_secrets
            ]
            body.secrets = [client.V1ObjectReference(name=secret) for secret in image_pull_secrets]

        with self._translate("ServiceAccount", name, namespace):
            return self.core_v1.create_namespaced_service_account(namespace=namespace, body=body)

    def create_token_review(self, token: str) -> Any:
        """Submit a TokenReview and return its status."""
        body = client.V1TokenReview(spec=client.V1TokenReviewSpec(token=token))
        with self._translate("TokenReview"):
            return self.auth_v1.create_token_review(body=body).status
