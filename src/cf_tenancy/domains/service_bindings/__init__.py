"""Service bindings domain - binding apps to service instances."""

from cf_tenancy.domains.service_bindings.crds import ServiceBindingCRDs
from cf_tenancy.domains.service_bindings.models import (
    CreateServiceBindingMessage,
    ListServiceBindingsMessage,
    ServiceBindingRecord,
)
from cf_tenancy.domains.service_bindings.repository import ServiceBindingRepository

__all__ = [
    "CreateServiceBindingMessage",
    "ListServiceBindingsMessage",
    "ServiceBindingCRDs",
    "ServiceBindingRecord",
    "ServiceBindingRepository",
]
