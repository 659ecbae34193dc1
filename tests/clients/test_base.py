"""Tests for K8sClient."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import urllib3
from kubernetes.client import ApiException

from cf_tenancy.clients.base import MERGE_PATCH, CRDDefinition, K8sClient
from cf_tenancy.config import AuthMode, TenancyConfig
from cf_tenancy.utils.errors import (
    ConfigurationError,
    NotFoundError,
    TransportError,
    ValidationError,
)

ANCHOR = CRDDefinition(
    group="hnc.x-k8s.io",
    version="v1alpha2",
    plural="subnamespaceanchors",
    kind="SubnamespaceAnchor",
)


class TestCRDDefinition:
    """Tests for CRDDefinition."""

    def test_api_version(self) -> None:
        """Test the apiVersion string."""
        assert ANCHOR.api_version == "hnc.x-k8s.io/v1alpha2"


class TestK8sClientResources:
    """Test custom resource operations against a mocked dynamic client."""

    @pytest.fixture
    def mock_resource(self) -> MagicMock:
        """Dynamic resource handle."""
        return MagicMock()

    @pytest.fixture
    def client(self, mock_resource: MagicMock) -> K8sClient:
        """Create a K8sClient with a mocked dynamic client."""
        k8s = K8sClient(TenancyConfig(_env_file=None), api_client=MagicMock())
        k8s._dynamic_client = MagicMock()
        k8s._dynamic_client.resources.get.return_value = mock_resource
        return k8s

    def test_resource_handle_is_cached(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test discovery happens once per CRD."""
        mock_resource.get.return_value = {"items": []}

        client.list_resources(ANCHOR, namespace="cf")
        client.list_resources(ANCHOR, namespace="cf")

        client.dynamic.resources.get.assert_called_once_with(
            api_version="hnc.x-k8s.io/v1alpha2", kind="SubnamespaceAnchor"
        )

    def test_list_returns_items(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test listing returns the items as dicts."""
        result = MagicMock()
        result.to_dict.return_value = {"items": [{"metadata": {"name": "cf-org-1"}}]}
        mock_resource.get.return_value = result

        items = client.list_resources(ANCHOR, field_selector="metadata.name=cf-org-1")

        assert items == [{"metadata": {"name": "cf-org-1"}}]
        mock_resource.get.assert_called_once_with(
            namespace=None, label_selector=None, field_selector="metadata.name=cf-org-1"
        )

    def test_get_not_found(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test a 404 becomes NotFoundError."""
        mock_resource.get.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFoundError) as exc_info:
            client.get(ANCHOR, "cf-org-1", namespace="cf")

        assert exc_info.value.name == "cf-org-1"
        assert exc_info.value.namespace == "cf"

    def test_create_webhook_denial(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test admission denials become ValidationError."""
        exc = ApiException(status=400, reason="Bad Request")
        exc.body = json.dumps(
            {"message": 'admission webhook "v.example.org" denied the request: duplicate name'}
        )
        mock_resource.create.side_effect = exc

        with pytest.raises(ValidationError, match="duplicate name"):
            client.create(ANCHOR, body={"metadata": {"name": "cf-org-1"}}, namespace="cf")

    def test_transport_failure(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test connection errors become TransportError."""
        mock_resource.delete.side_effect = urllib3.exceptions.ProtocolError("connection reset")

        with pytest.raises(TransportError, match="connection reset"):
            client.delete(ANCHOR, "cf-org-1", namespace="cf")

    def test_patch_uses_merge_patch(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test patches are sent as JSON merge patches."""
        mock_resource.patch.return_value = {"metadata": {"name": "hierarchy"}}

        client.patch(ANCHOR, "hierarchy", body={"spec": {}}, namespace="cf-org-1")

        mock_resource.patch.assert_called_once_with(
            body={"spec": {}}, name="hierarchy", namespace="cf-org-1", content_type=MERGE_PATCH
        )

    def test_watch_stops_watcher(self, client: K8sClient, mock_resource: MagicMock) -> None:
        """Test the server-side watch is stopped when the stream is closed."""
        events = [{"type": "ADDED", "raw_object": {}}, {"type": "MODIFIED", "raw_object": {}}]

        with patch("cf_tenancy.clients.base.watch.Watch") as watch_cls:
            watch_cls.return_value.stream.return_value = iter(events)
            stream = client.watch(ANCHOR, namespace="cf", timeout_seconds=5)
            first = next(stream)
            stream.close()

        assert first == events[0]
        watch_cls.return_value.stop.assert_called_once()
        call_args = watch_cls.return_value.stream.call_args
        assert call_args.args == (mock_resource.get,)
        assert call_args.kwargs["namespace"] == "cf"
        assert call_args.kwargs["timeout_seconds"] == 5

    def test_watch_fractional_window(self, client: K8sClient) -> None:
        """Test the server timeout is whole seconds and the read timeout is exact."""
        with patch("cf_tenancy.clients.base.watch.Watch") as watch_cls:
            watch_cls.return_value.stream.return_value = iter([])
            list(client.watch(ANCHOR, namespace="cf", timeout_seconds=0.25))

        kwargs = watch_cls.return_value.stream.call_args.kwargs
        assert kwargs["timeout_seconds"] == 1
        assert kwargs["_request_timeout"] == 0.25

    def test_watch_read_timeout_ends_stream(self, client: K8sClient) -> None:
        """Test a read timeout ends the stream quietly."""
        event = {"type": "ADDED", "raw_object": {}}

        def stream(*args: object, **kwargs: object) -> Iterator[dict[str, object]]:
            yield event
            raise urllib3.exceptions.ReadTimeoutError(None, "/apis", "Read timed out.")

        with patch("cf_tenancy.clients.base.watch.Watch") as watch_cls:
            watch_cls.return_value.stream.side_effect = stream
            events = list(client.watch(ANCHOR, namespace="cf", timeout_seconds=0.25))

        assert events == [event]
        watch_cls.return_value.stop.assert_called_once()

    def test_watch_other_failure(self, client: K8sClient) -> None:
        """Test other watch failures are still translated."""
        with patch("cf_tenancy.clients.base.watch.Watch") as watch_cls:
            watch_cls.return_value.stream.side_effect = urllib3.exceptions.ProtocolError(
                "connection reset"
            )
            with pytest.raises(TransportError, match="connection reset"):
                list(client.watch(ANCHOR, namespace="cf", timeout_seconds=0.25))


class TestK8sClientConnect:
    """Test loading credentials."""

    def test_unusable_kubeconfig(self, tmp_path: Path) -> None:
        """Test a kubeconfig without a current context is a configuration error."""
        kubeconfig = tmp_path / "kubeconfig"
        kubeconfig.write_text("apiVersion: v1\nkind: Config\nclusters: []\n")
        config = TenancyConfig(
            _env_file=None, auth_mode=AuthMode.KUBECONFIG, kubeconfig_path=str(kubeconfig)
        )

        with pytest.raises(ConfigurationError, match="failed to load kubeconfig credentials"):
            K8sClient(config).connect()

    def test_in_cluster_without_service_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a failed in-cluster load is a configuration error."""
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
        config = TenancyConfig(_env_file=None, auth_mode=AuthMode.IN_CLUSTER)

        with pytest.raises(ConfigurationError, match="failed to load in_cluster credentials"):
            K8sClient(config).connect()


class TestK8sClientCore:
    """Test typed API operations."""

    @pytest.fixture
    def client(self) -> K8sClient:
        """Create a K8sClient with mocked typed APIs."""
        k8s = K8sClient(TenancyConfig(_env_file=None), api_client=MagicMock())
        k8s._core_v1 = MagicMock()
        k8s._auth_v1 = MagicMock()
        return k8s

    def test_create_service_account_with_pull_secrets(self, client: K8sClient) -> None:
        """Test registry credentials are referenced from the service account."""
        client.create_service_account("kpack-service-account", "cf-space-1", ["registry-creds"])

        call_kwargs = client.core_v1.create_namespaced_service_account.call_args.kwargs
        body = call_kwargs["body"]
        assert call_kwargs["namespace"] == "cf-space-1"
        assert body.metadata.name == "kpack-service-account"
        assert [s.name for s in body.image_pull_secrets] == ["registry-creds"]
        assert [s.name for s in body.secrets] == ["registry-creds"]

    def test_create_service_account_plain(self, client: K8sClient) -> None:
        """Test a service account without credentials."""
        client.create_service_account("eirini", "cf-space-1")

        body = client.core_v1.create_namespaced_service_account.call_args.kwargs["body"]
        assert body.image_pull_secrets is None
        assert body.secrets is None

    def test_create_token_review(self, client: K8sClient) -> None:
        """Test TokenReview returns the review status."""
        status = client.create_token_review("user-token")

        body = client.auth_v1.create_token_review.call_args.kwargs["body"]
        assert body.spec.token == "user-token"
        assert status is client.auth_v1.create_token_review.return_value.status


class TestK8sClientLifecycle:
    """Test connection lifecycle."""

    def test_not_connected(self) -> None:
        """Test API access before connect fails."""
        k8s = K8sClient(TenancyConfig(_env_file=None))

        assert not k8s.is_connected
        with pytest.raises(RuntimeError, match="not connected"):
            _ = k8s.dynamic

    def test_context_manager_disconnects(self) -> None:
        """Test leaving the context closes the connection pool."""
        api_client = MagicMock()
        k8s = K8sClient(TenancyConfig(_env_file=None), api_client=api_client)
        k8s._dynamic_client = MagicMock()

        with k8s:
            assert k8s.is_connected

        api_client.close.assert_called_once()
        assert not k8s.is_connected
