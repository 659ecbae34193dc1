"""Tests for filter and label helpers."""

from cf_tenancy.utils.filters import filter_authorized, match_filter, to_set
from cf_tenancy.utils.labels import CFAnnotations, CFLabels


class TestFilters:
    """Tests for list filter helpers."""

    def test_to_set(self) -> None:
        """Test optional lists collapse into sets."""
        assert to_set(None) == set()
        assert to_set(["a", "b", "a"]) == {"a", "b"}

    def test_empty_filter_matches_everything(self) -> None:
        """Test an empty filter is no filter."""
        assert match_filter(set(), "anything")
        assert match_filter(set(), None)

    def test_non_empty_filter(self) -> None:
        """Test membership with a non-empty filter."""
        assert match_filter({"a"}, "a")
        assert not match_filter({"a"}, "b")
        assert not match_filter({"a"}, None)

    def test_filter_authorized(self) -> None:
        """Test records outside the authorized set are dropped, order kept."""
        records = ["ns-3", "ns-1", "ns-2"]

        assert filter_authorized(records, {"ns-1", "ns-3"}, key=str) == ["ns-3", "ns-1"]


class TestLabels:
    """Tests for label and annotation helpers."""

    def test_depth_label(self) -> None:
        """Test the HNC depth label is relative to the root namespace."""
        assert CFLabels.depth_label("cf") == "cf.tree.hnc.x-k8s.io/depth"

    def test_filter_selector(self) -> None:
        """Test building a label selector."""
        selector = CFLabels.filter_selector(**{"cf.tree.hnc.x-k8s.io/depth": "1"})

        assert selector == "cf.tree.hnc.x-k8s.io/depth=1"

    def test_is_suspended(self) -> None:
        """Test reading the suspended annotation."""
        assert CFAnnotations.is_suspended({CFAnnotations.SUSPENDED: "true"})
        assert CFAnnotations.is_suspended({CFAnnotations.SUSPENDED: "True"})
        assert not CFAnnotations.is_suspended({CFAnnotations.SUSPENDED: "false"})
        assert not CFAnnotations.is_suspended({})
