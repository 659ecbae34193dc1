"""Shared Pydantic models."""

from cf_tenancy.models.common import Condition, ResourceMetadata, find_condition

__all__ = [
    "Condition",
    "ResourceMetadata",
    "find_condition",
]
