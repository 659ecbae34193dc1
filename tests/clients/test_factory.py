"""Tests for UserClientFactory."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client

from cf_tenancy.authorization.identity import CallerIdentity
from cf_tenancy.clients.factory import UserClientFactory
from cf_tenancy.config import TenancyConfig
from cf_tenancy.utils.errors import TransportError


class TestUserClientFactory:
    """Test building per-caller clients."""

    @pytest.fixture
    def privileged(self) -> MagicMock:
        """Privileged client with a certificate-authenticated configuration."""
        cfg = client.Configuration()
        cfg.host = "https://cluster.example:6443"
        cfg.verify_ssl = True
        cfg.cert_file = "/etc/admin.crt"
        cfg.key_file = "/etc/admin.key"
        mock = MagicMock()
        mock.configuration = cfg
        return mock

    @pytest.fixture
    def factory(self, privileged: MagicMock) -> UserClientFactory:
        return UserClientFactory(privileged, TenancyConfig(_env_file=None))

    def test_build_client_uses_caller_token(self, factory: UserClientFactory) -> None:
        """Test the new client shares the server but not the credentials."""
        with patch("cf_tenancy.clients.factory.K8sClient") as k8s_cls:
            user_client = factory.build_client(CallerIdentity(token="user-token"))

        assert user_client is k8s_cls.return_value
        user_client.connect.assert_called_once()
        cfg = k8s_cls.call_args.kwargs["api_client"].configuration
        assert cfg.host == "https://cluster.example:6443"
        assert cfg.api_key == {"authorization": "user-token"}
        assert cfg.api_key_prefix == {"authorization": "Bearer"}
        assert cfg.cert_file is None
        assert cfg.key_file is None

    def test_build_client_failure_adds_context(self, factory: UserClientFactory) -> None:
        """Test connect failures say which step failed."""
        with patch("cf_tenancy.clients.factory.K8sClient") as k8s_cls:
            k8s_cls.return_value.connect.side_effect = TransportError("connection refused")

            with pytest.raises(TransportError) as exc_info:
                factory.build_client(CallerIdentity(token="user-token"))

        assert exc_info.value.message == "failed to build user client: connection refused"
