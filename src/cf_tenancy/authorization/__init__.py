"""Caller identity resolution and namespace visibility."""

from cf_tenancy.authorization.identity import CallerIdentity, Identity, IdentityProvider
from cf_tenancy.authorization.namespace_permissions import NamespacePermissions

__all__ = [
    "CallerIdentity",
    "Identity",
    "IdentityProvider",
    "NamespacePermissions",
]
