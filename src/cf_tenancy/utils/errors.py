"""Error taxonomy for tenancy operations.

Every failure that crosses a repository boundary is one of the exceptions
defined here. Raw ``kubernetes.client.ApiException`` instances are translated
by :func:`from_api_exception` inside the cluster client, so callers never
have to inspect HTTP status codes.
"""

from __future__ import annotations

import json
import re
from typing import Any

_WEBHOOK_DENIAL = re.compile(r'admission webhook "[^"]*" denied the request:\s*(?P<payload>.*)', re.S)


class TenancyError(Exception):
    """Base exception for all tenancy errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(TenancyError):
    """Resource not found, or not visible to the caller."""

    def __init__(
        self,
        resource_type: str,
        name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.name = name
        self.namespace = namespace
        message = f"{resource_type} not found"
        if name:
            message = f"{resource_type} '{name}' not found"
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(message)


class ForbiddenError(TenancyError):
    """Caller is not allowed to perform the operation."""

    def __init__(self, resource_type: str, message: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(message or f"forbidden: {resource_type}")


class ValidationError(TenancyError):
    """Request rejected by admission, correctable by the user."""


class ResourceExistsError(TenancyError):
    """Resource with the same name already exists."""

    def __init__(self, resource_type: str, name: str | None = None) -> None:
        self.resource_type = resource_type
        self.name = name
        if name:
            super().__init__(f"{resource_type} '{name}' already exists")
        else:
            super().__init__(f"{resource_type} already exists")


class AuthenticationError(TenancyError):
    """Caller credentials are missing or invalid."""


class ConfigurationError(TenancyError):
    """Invalid or unusable configuration."""


class TransportError(TenancyError):
    """Generic failure talking to the cluster."""


class ConvergenceTimeoutError(TenancyError):
    """Provisioned object never reached its ready state."""

    def __init__(self, resource_type: str, name: str, elapsed: float) -> None:
        self.resource_type = resource_type
        self.name = name
        self.elapsed = elapsed
        super().__init__(
            f"{resource_type} '{name}' did not become ready within {elapsed:.3f}s",
            {"elapsed": elapsed},
        )


class PermissionPropagationTimeoutError(TenancyError):
    """Namespace exists but the caller's permissions never showed up in it."""

    def __init__(self, resource_type: str, name: str, elapsed: float) -> None:
        self.resource_type = resource_type
        self.name = name
        self.elapsed = elapsed
        super().__init__(
            f"failed establishing permissions in new namespace '{name}' after {elapsed:.3f}s",
            {"elapsed": elapsed},
        )


class OperationCancelledError(TenancyError):
    """The caller cancelled a blocking wait."""


def webhook_denial_message(exc: Any) -> str | None:
    """Extract the user-facing message from an admission webhook denial.

    Returns None when the exception is not a webhook denial.
    """
    body = getattr(exc, "body", None)
    message = None
    if body:
        try:
            message = json.loads(body).get("message")
        except (TypeError, ValueError, AttributeError):
            message = body if isinstance(body, str) else None
    if not message:
        message = getattr(exc, "reason", None)
    if not message:
        return None

    match = _WEBHOOK_DENIAL.search(message)
    if not match:
        return None

    payload = match.group("payload").strip()
    # Webhooks may encode a structured {"code": ..., "message": ...} payload
    try:
        decoded = json.loads(payload)
    except ValueError:
        return payload
    if isinstance(decoded, dict) and decoded.get("message"):
        return str(decoded["message"])
    return payload


def from_api_exception(
    exc: Exception,
    resource_type: str,
    name: str | None = None,
    namespace: str | None = None,
) -> TenancyError:
    """Translate a kubernetes ApiException into the tenancy error taxonomy."""
    if isinstance(exc, TenancyError):
        return exc

    denial = webhook_denial_message(exc)
    if denial is not None:
        return ValidationError(denial)

    status = getattr(exc, "status", None)
    if status == 401:
        return AuthenticationError(f"unauthenticated request for {resource_type}")
    if status == 403:
        return ForbiddenError(resource_type)
    if status == 404:
        return NotFoundError(resource_type, name, namespace)
    if status == 409:
        return ResourceExistsError(resource_type, name)
    return TransportError(f"{resource_type} request failed: {exc}")


def add_context(err: TenancyError, context: str) -> TenancyError:
    """Prefix an error's message with the operation that failed, keeping its class."""
    err.message = f"{context}: {err.message}"
    err.args = (err.message,)
    return err


def forbidden_as_not_found(
    err: TenancyError,
    resource_type: str | None = None,
    name: str | None = None,
) -> TenancyError:
    """Report forbidden and not-found alike so existence does not leak."""
    if isinstance(err, (ForbiddenError, NotFoundError)):
        return NotFoundError(resource_type or err.resource_type, name)
    return err
