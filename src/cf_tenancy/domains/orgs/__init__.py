"""Orgs domain - organization management."""

from cf_tenancy.domains.orgs.models import (
    CreateOrgMessage,
    DeleteOrgMessage,
    ListOrgsMessage,
    OrgRecord,
)
from cf_tenancy.domains.orgs.repository import OrgRepository, org_backing_resource

__all__ = [
    "CreateOrgMessage",
    "DeleteOrgMessage",
    "ListOrgsMessage",
    "OrgRecord",
    "OrgRepository",
    "org_backing_resource",
]
