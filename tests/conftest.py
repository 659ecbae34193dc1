"""Shared fixtures for tenancy tests."""

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from cf_tenancy.authorization.identity import CallerIdentity
from cf_tenancy.utils.labels import CFLabels

ROOT_NAMESPACE = "cf"


@pytest.fixture
def caller() -> CallerIdentity:
    """Caller whose username is already resolved."""
    return CallerIdentity(token="user-token", username="alice")


@pytest.fixture
def privileged() -> MagicMock:
    """Create a mock privileged K8sClient."""
    return MagicMock()


@pytest.fixture
def user_client() -> MagicMock:
    """Create a mock per-caller K8sClient usable as a context manager."""
    mock = MagicMock()
    mock.__enter__.return_value = mock
    return mock


@pytest.fixture
def user_clients(user_client: MagicMock) -> MagicMock:
    """Create a mock UserClientFactory handing out ``user_client``."""
    mock = MagicMock()
    mock.build_client.return_value = user_client
    return mock


@pytest.fixture
def ns_perms() -> MagicMock:
    """Create a mock NamespacePermissions that authorizes nothing."""
    mock = MagicMock()
    mock.get_authorized_org_namespaces.return_value = set()
    mock.get_authorized_space_namespaces.return_value = set()
    return mock


@pytest.fixture
def make_anchor() -> Callable[..., dict[str, Any]]:
    """Factory for raw SubnamespaceAnchor objects."""

    def _make(
        name: str,
        namespace: str = ROOT_NAMESPACE,
        display_name: str | None = "my-org",
        state: str | None = "Ok",
        name_label: str = CFLabels.ORG_NAME,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        obj_labels = dict(labels or {})
        if display_name is not None:
            obj_labels[name_label] = display_name
        obj: dict[str, Any] = {
            "apiVersion": "hnc.x-k8s.io/v1alpha2",
            "kind": "SubnamespaceAnchor",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "uid": f"{name}-uid",
                "creationTimestamp": "2024-01-15T10:00:00Z",
                "labels": obj_labels,
                "annotations": dict(annotations or {}),
            },
        }
        if state is not None:
            obj["status"] = {"status": state}
        return obj

    return _make


@pytest.fixture
def make_cf_org() -> Callable[..., dict[str, Any]]:
    """Factory for raw CFOrg objects."""

    def _make(
        name: str,
        display_name: str = "my-org",
        ready: bool = True,
        namespace: str = ROOT_NAMESPACE,
    ) -> dict[str, Any]:
        return {
            "apiVersion": "korifi.cloudfoundry.org/v1alpha1",
            "kind": "CFOrg",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "creationTimestamp": "2024-01-15T10:00:00Z",
            },
            "spec": {"displayName": display_name},
            "status": {
                "conditions": [{"type": "Ready", "status": "True" if ready else "False"}],
            },
        }

    return _make


@pytest.fixture
def make_binding() -> Callable[..., dict[str, Any]]:
    """Factory for raw CFServiceBinding objects."""

    def _make(
        guid: str,
        namespace: str,
        app_guid: str = "app-1",
        instance_guid: str = "instance-1",
        name: str | None = None,
    ) -> dict[str, Any]:
        spec: dict[str, Any] = {
            "service": {
                "kind": "CFServiceInstance",
                "apiVersion": "services.cloudfoundry.org/v1alpha1",
                "name": instance_guid,
            },
            "appRef": {"name": app_guid},
        }
        if name is not None:
            spec["name"] = name
        return {
            "apiVersion": "services.cloudfoundry.org/v1alpha1",
            "kind": "CFServiceBinding",
            "metadata": {
                "name": guid,
                "namespace": namespace,
                "creationTimestamp": "2024-01-15T10:00:00Z",
                "managedFields": [
                    {"manager": "korifi", "time": "2024-01-15T10:00:00Z"},
                    {"manager": "korifi", "time": "2024-01-16T12:30:00Z"},
                ],
            },
            "spec": spec,
        }

    return _make
