"""Tests for NamespacePermissions."""

from unittest.mock import MagicMock

import pytest

from cf_tenancy.authorization.identity import CallerIdentity, IdentityProvider
from cf_tenancy.authorization.namespace_permissions import NamespacePermissions
from cf_tenancy.utils.errors import ForbiddenError, TransportError


def _namespace(name: str) -> MagicMock:
    ns = MagicMock()
    ns.metadata.name = name
    return ns


def _role_binding(namespace: str, *users: str) -> MagicMock:
    binding = MagicMock()
    binding.metadata.namespace = namespace
    subjects = []
    for user in users:
        subject = MagicMock()
        subject.kind = "User"
        subject.name = user
        subjects.append(subject)
    binding.subjects = subjects or None
    return binding


class TestNamespacePermissions:
    """Test computing the namespaces a caller may see."""

    @pytest.fixture
    def permissions(self, privileged: MagicMock) -> NamespacePermissions:
        return NamespacePermissions(privileged, IdentityProvider(privileged), "cf")

    def test_org_namespaces(
        self,
        permissions: NamespacePermissions,
        privileged: MagicMock,
        caller: CallerIdentity,
    ) -> None:
        """Test org namespaces with a binding for the caller are authorized."""
        privileged.list_namespaces.return_value = [
            _namespace("cf-org-1"),
            _namespace("cf-org-2"),
            _namespace("cf-org-3"),
        ]
        privileged.list_role_bindings.return_value = [
            _role_binding("cf-org-1", "alice"),
            _role_binding("cf-org-1", "alice", "bob"),
            _role_binding("cf-org-2", "bob"),
            _role_binding("cf-org-3"),
            _role_binding("kube-system", "alice"),
        ]

        authorized = permissions.get_authorized_org_namespaces(caller)

        assert authorized == {"cf-org-1"}
        privileged.list_namespaces.assert_called_once_with(
            label_selector="cf.tree.hnc.x-k8s.io/depth=1"
        )

    def test_space_namespaces_use_depth_two(
        self,
        permissions: NamespacePermissions,
        privileged: MagicMock,
        caller: CallerIdentity,
    ) -> None:
        """Test space namespaces are two levels below the root."""
        privileged.list_namespaces.return_value = [_namespace("cf-space-1")]
        privileged.list_role_bindings.return_value = [_role_binding("cf-space-1", "alice")]

        assert permissions.get_authorized_space_namespaces(caller) == {"cf-space-1"}
        privileged.list_namespaces.assert_called_once_with(
            label_selector="cf.tree.hnc.x-k8s.io/depth=2"
        )

    def test_list_failure(
        self,
        permissions: NamespacePermissions,
        privileged: MagicMock,
        caller: CallerIdentity,
    ) -> None:
        """Test failures listing cluster state are transport errors."""
        privileged.list_role_bindings.side_effect = ForbiddenError("RoleBinding")

        with pytest.raises(TransportError, match="failed to list space namespaces"):
            permissions.get_authorized_space_namespaces(caller)
