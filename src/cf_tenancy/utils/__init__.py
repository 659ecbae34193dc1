"""Utility functions and helpers for the tenancy layer."""

from cf_tenancy.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    ConvergenceTimeoutError,
    ForbiddenError,
    NotFoundError,
    OperationCancelledError,
    PermissionPropagationTimeoutError,
    ResourceExistsError,
    TenancyError,
    TransportError,
    ValidationError,
)
from cf_tenancy.utils.filters import filter_authorized, match_filter, to_set
from cf_tenancy.utils.labels import CFAnnotations, CFLabels
from cf_tenancy.utils.wait import WaitTimeout, poll_until, watch_until

__all__ = [
    # Errors
    "TenancyError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ResourceExistsError",
    "AuthenticationError",
    "ConfigurationError",
    "TransportError",
    "ConvergenceTimeoutError",
    "PermissionPropagationTimeoutError",
    "OperationCancelledError",
    # Labels and annotations
    "CFAnnotations",
    "CFLabels",
    # Filters
    "filter_authorized",
    "match_filter",
    "to_set",
    # Waiting
    "WaitTimeout",
    "poll_until",
    "watch_until",
]
