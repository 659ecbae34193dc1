"""Spaces domain - space management."""

from cf_tenancy.domains.spaces.models import (
    CreateSpaceMessage,
    DeleteSpaceMessage,
    ListSpacesMessage,
    SpaceRecord,
)
from cf_tenancy.domains.spaces.repository import SpaceRepository

__all__ = [
    "CreateSpaceMessage",
    "DeleteSpaceMessage",
    "ListSpacesMessage",
    "SpaceRecord",
    "SpaceRepository",
]
