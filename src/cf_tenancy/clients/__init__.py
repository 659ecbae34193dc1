"""Kubernetes clients for privileged and per-caller access."""

from cf_tenancy.clients.base import CRDDefinition, K8sClient
from cf_tenancy.clients.factory import UserClientFactory

__all__ = [
    "CRDDefinition",
    "K8sClient",
    "UserClientFactory",
]
