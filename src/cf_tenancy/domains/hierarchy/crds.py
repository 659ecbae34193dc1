"""CRD definitions for hierarchical namespaces and org resources."""

from cf_tenancy.clients.base import CRDDefinition


class HierarchyCRDs:
    """HNC and Korifi CRD definitions."""

    SUBNAMESPACE_ANCHOR = CRDDefinition(
        group="hnc.x-k8s.io",
        version="v1alpha2",
        plural="subnamespaceanchors",
        kind="SubnamespaceAnchor",
    )

    HIERARCHY_CONFIGURATION = CRDDefinition(
        group="hnc.x-k8s.io",
        version="v1alpha2",
        plural="hierarchyconfigurations",
        kind="HierarchyConfiguration",
    )

    CF_ORG = CRDDefinition(
        group="korifi.cloudfoundry.org",
        version="v1alpha1",
        plural="cforgs",
        kind="CFOrg",
    )

    # HNC keeps exactly one HierarchyConfiguration per namespace, with this name
    HIERARCHY_CONFIGURATION_NAME = "hierarchy"
