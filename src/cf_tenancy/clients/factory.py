"""Builds clients that act with a caller's own credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kubernetes import client  # type: ignore[import-untyped]
from kubernetes.client import ApiClient  # type: ignore[import-untyped]

from cf_tenancy.clients.base import K8sClient
from cf_tenancy.utils.errors import TenancyError, add_context

if TYPE_CHECKING:
    from cf_tenancy.authorization.identity import CallerIdentity
    from cf_tenancy.config import TenancyConfig


class UserClientFactory:
    """Derives per-caller clients from the privileged client's connection."""

    def __init__(self, privileged: K8sClient, config: TenancyConfig) -> None:
        self._privileged = privileged
        self._config = config

    def build_client(self, caller: CallerIdentity) -> K8sClient:
        """Return a connected client authenticating with the caller's token.

        Server address and CA are shared with the privileged client; its
        credentials (token or client certificate) are not.
        """
        base = self._privileged.configuration
        cfg = client.Configuration()
        cfg.host = base.host
        cfg.ssl_ca_cert = base.ssl_ca_cert
        cfg.verify_ssl = base.verify_ssl
        cfg.proxy = base.proxy
        cfg.api_key = {"authorization": caller.token}
        cfg.api_key_prefix = {"authorization": "Bearer"}

        user_client = K8sClient(self._config, api_client=ApiClient(cfg))
        try:
            user_client.connect()
        except TenancyError as e:
            raise add_context(e, "failed to build user client")
        return user_client
