"""Caller identities and their resolution to RBAC subjects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cf_tenancy.utils.errors import AuthenticationError

if TYPE_CHECKING:
    from cf_tenancy.clients.base import K8sClient

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_PREFIX = "system:serviceaccount:"

USER_KIND = "User"
SERVICE_ACCOUNT_KIND = "ServiceAccount"


@dataclass(frozen=True)
class CallerIdentity:
    """Credentials of the authenticated requester.

    ``token`` is forwarded to the cluster on every write made for this
    caller. ``username`` may be supplied when the caller was already
    authenticated upstream; otherwise it is resolved with a TokenReview.
    """

    token: str = field(repr=False)
    username: str | None = None


@dataclass(frozen=True)
class Identity:
    """RBAC subject a caller resolves to."""

    name: str
    kind: str

    @classmethod
    def from_username(cls, username: str) -> Identity:
        """Classify a Kubernetes username as a User or ServiceAccount subject."""
        if username.startswith(SERVICE_ACCOUNT_PREFIX):
            return cls(name=username, kind=SERVICE_ACCOUNT_KIND)
        return cls(name=username, kind=USER_KIND)

    def matches_subject(self, subject: object) -> bool:
        """Check whether a RoleBinding subject refers to this identity."""
        kind = getattr(subject, "kind", None)
        if kind != self.kind:
            return False
        if kind == SERVICE_ACCOUNT_KIND:
            qualified = (
                f"{SERVICE_ACCOUNT_PREFIX}{getattr(subject, 'namespace', '')}:"
                f"{getattr(subject, 'name', '')}"
            )
            return qualified == self.name
        return getattr(subject, "name", None) == self.name


class IdentityProvider:
    """Resolves callers to identities through the privileged client."""

    def __init__(self, privileged: K8sClient) -> None:
        self._privileged = privileged

    def get_identity(self, caller: CallerIdentity) -> Identity:
        """Resolve a caller.

        Raises:
            AuthenticationError: If the token is not accepted by the cluster.
        """
        if caller.username:
            return Identity.from_username(caller.username)

        status = self._privileged.create_token_review(caller.token)
        if not getattr(status, "authenticated", False) or status.user is None:
            raise AuthenticationError(getattr(status, "error", None) or "invalid token")

        logger.debug(f"Resolved caller to {status.user.username}")
        return Identity.from_username(status.user.username)
