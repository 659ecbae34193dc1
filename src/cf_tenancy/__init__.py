"""Org, space and service binding provisioning on hierarchical namespaces."""

__version__ = "0.1.0"
