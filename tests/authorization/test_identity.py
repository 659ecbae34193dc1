"""Tests for caller identity resolution."""

from unittest.mock import MagicMock

import pytest

from cf_tenancy.authorization.identity import (
    SERVICE_ACCOUNT_KIND,
    USER_KIND,
    CallerIdentity,
    Identity,
    IdentityProvider,
)
from cf_tenancy.utils.errors import AuthenticationError


def _subject(kind: str, name: str, namespace: str | None = None) -> MagicMock:
    subject = MagicMock()
    subject.kind = kind
    subject.name = name
    subject.namespace = namespace
    return subject


class TestIdentity:
    """Tests for Identity."""

    def test_user(self) -> None:
        """Test plain usernames are User subjects."""
        identity = Identity.from_username("alice")

        assert identity.kind == USER_KIND
        assert identity.matches_subject(_subject("User", "alice"))
        assert not identity.matches_subject(_subject("User", "bob"))
        assert not identity.matches_subject(_subject("Group", "alice"))

    def test_service_account(self) -> None:
        """Test service account usernames match namespaced subjects."""
        identity = Identity.from_username("system:serviceaccount:cf:deployer")

        assert identity.kind == SERVICE_ACCOUNT_KIND
        assert identity.matches_subject(_subject("ServiceAccount", "deployer", "cf"))
        assert not identity.matches_subject(_subject("ServiceAccount", "deployer", "other"))

    def test_caller_repr_hides_token(self) -> None:
        """Test the bearer token is not printed."""
        assert "secret-token" not in repr(CallerIdentity(token="secret-token", username="alice"))


class TestIdentityProvider:
    """Tests for IdentityProvider."""

    @pytest.fixture
    def privileged(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def provider(self, privileged: MagicMock) -> IdentityProvider:
        return IdentityProvider(privileged)

    def test_known_username_skips_token_review(
        self, provider: IdentityProvider, privileged: MagicMock
    ) -> None:
        """Test a pre-resolved username is trusted."""
        identity = provider.get_identity(CallerIdentity(token="t", username="alice"))

        assert identity == Identity(name="alice", kind=USER_KIND)
        privileged.create_token_review.assert_not_called()

    def test_token_review(self, provider: IdentityProvider, privileged: MagicMock) -> None:
        """Test the token is resolved through a TokenReview."""
        status = MagicMock()
        status.authenticated = True
        status.user.username = "system:serviceaccount:cf:deployer"
        privileged.create_token_review.return_value = status

        identity = provider.get_identity(CallerIdentity(token="t"))

        assert identity.kind == SERVICE_ACCOUNT_KIND
        privileged.create_token_review.assert_called_once_with("t")

    def test_rejected_token(self, provider: IdentityProvider, privileged: MagicMock) -> None:
        """Test an unauthenticated token is an AuthenticationError."""
        status = MagicMock()
        status.authenticated = False
        status.error = "token expired"
        privileged.create_token_review.return_value = status

        with pytest.raises(AuthenticationError, match="token expired"):
            provider.get_identity(CallerIdentity(token="t"))
