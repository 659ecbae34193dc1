"""Namespace lookup by resource GUID."""

from cf_tenancy.domains.namespaces.retriever import NamespaceRetriever

__all__ = ["NamespaceRetriever"]
