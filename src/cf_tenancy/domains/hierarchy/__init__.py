"""Hierarchy domain - child namespace provisioning."""

from cf_tenancy.domains.hierarchy.crds import HierarchyCRDs
from cf_tenancy.domains.hierarchy.models import Anchor, AnchorState
from cf_tenancy.domains.hierarchy.provisioner import AnchorProvisioner
from cf_tenancy.domains.hierarchy.resources import (
    CFOrgResource,
    ProvisionableResource,
    SubnamespaceAnchorResource,
)

__all__ = [
    "Anchor",
    "AnchorProvisioner",
    "AnchorState",
    "CFOrgResource",
    "HierarchyCRDs",
    "ProvisionableResource",
    "SubnamespaceAnchorResource",
]
