"""Tenancy domains: hierarchy provisioning, orgs, spaces and service bindings."""
