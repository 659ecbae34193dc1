"""Label and annotation keys used on tenancy resources."""


class CFLabels:
    """Standard labels applied to org, space and binding resources."""

    ORG_NAME = "cloudfoundry.org/org-name"
    SPACE_NAME = "cloudfoundry.org/space-name"
    PROVISIONED_SERVICE = "servicebinding.io/provisioned-service"

    # HNC labels every namespace in a tree with its depth below each ancestor
    HNC_DEPTH_SUFFIX = ".tree.hnc.x-k8s.io/depth"
    ORG_DEPTH = "1"
    SPACE_DEPTH = "2"

    @classmethod
    def depth_label(cls, root_namespace: str) -> str:
        """Label key holding a namespace's depth below the root namespace."""
        return f"{root_namespace}{cls.HNC_DEPTH_SUFFIX}"

    @classmethod
    def filter_selector(cls, **labels: str) -> str:
        """Build a label selector string from key=value pairs."""
        return ",".join(f"{k}={v}" for k, v in labels.items())

    @classmethod
    def provisioned_service_labels(cls) -> dict[str, str]:
        """Labels applied to every service binding."""
        return {cls.PROVISIONED_SERVICE: "true"}


class CFAnnotations:
    """Standard annotations applied to tenancy resources."""

    SUSPENDED = "cloudfoundry.org/suspended"

    @classmethod
    def is_suspended(cls, annotations: dict[str, str]) -> bool:
        """Check the suspended marker annotation."""
        return annotations.get(cls.SUSPENDED, "").lower() == "true"
