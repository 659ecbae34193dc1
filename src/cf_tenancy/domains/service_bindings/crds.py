"""CRD definitions for service bindings."""

from cf_tenancy.clients.base import CRDDefinition


class ServiceBindingCRDs:
    """Service binding CRD definitions."""

    SERVICE_BINDING = CRDDefinition(
        group="services.cloudfoundry.org",
        version="v1alpha1",
        plural="cfservicebindings",
        kind="CFServiceBinding",
    )

    SERVICE_INSTANCE = CRDDefinition(
        group="services.cloudfoundry.org",
        version="v1alpha1",
        plural="cfserviceinstances",
        kind="CFServiceInstance",
    )
