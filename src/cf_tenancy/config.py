"""Configuration for the tenancy layer.

Loaded from environment variables with the CF_TENANCY_ prefix or from a
.env file.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthMode(str, Enum):
    """How the privileged client authenticates to the cluster."""

    AUTO = "auto"
    KUBECONFIG = "kubeconfig"
    IN_CLUSTER = "in_cluster"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class OrgBacking(str, Enum):
    """Cluster object that backs an organization."""

    ANCHOR = "anchor"
    CF_ORG = "cforg"


IN_CLUSTER_TOKEN_PATH = Path("/var/run/secrets/kubernetes.io/serviceaccount/token")


class TenancyConfig(BaseSettings):
    """Settings for the org/space/binding repositories."""

    model_config = SettingsConfigDict(
        env_prefix="CF_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    root_namespace: str = Field(
        default="cf",
        description="Namespace under which all org namespaces are created",
    )
    provision_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for each provisioning stage",
    )
    permission_poll_interval: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between checks for permissions in a new namespace",
    )
    org_backing: OrgBacking = Field(
        default=OrgBacking.ANCHOR,
        description="Whether orgs are SubnamespaceAnchors or CFOrg resources",
    )

    auth_mode: AuthMode = Field(default=AuthMode.AUTO, description="Privileged client auth mode")
    kubeconfig_path: str | None = Field(default=None, description="Path to kubeconfig file")
    kubeconfig_context: str | None = Field(default=None, description="Kubeconfig context to use")

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    @property
    def effective_kubeconfig_path(self) -> Path:
        """Kubeconfig path, defaulting to ~/.kube/config."""
        if self.kubeconfig_path:
            return Path(self.kubeconfig_path).expanduser()
        return Path.home() / ".kube" / "config"

    def validate_auth_config(self) -> list[str]:
        """Validate auth settings.

        Returns:
            Warnings about the configuration.

        Raises:
            ValueError: If the configuration cannot work.
        """
        warnings: list[str] = []

        if self.auth_mode == AuthMode.KUBECONFIG and not self.effective_kubeconfig_path.exists():
            raise ValueError(f"Kubeconfig not found at {self.effective_kubeconfig_path}")

        if self.auth_mode == AuthMode.IN_CLUSTER and not IN_CLUSTER_TOKEN_PATH.exists():
            raise ValueError("auth_mode is in_cluster but no service account token is mounted")

        if self.auth_mode == AuthMode.AUTO and not (
            IN_CLUSTER_TOKEN_PATH.exists() or self.effective_kubeconfig_path.exists()
        ):
            warnings.append(
                "No in-cluster service account token or kubeconfig found; "
                "connecting to the cluster will fail"
            )

        if self.permission_poll_interval >= self.provision_timeout:
            warnings.append(
                f"permission_poll_interval ({self.permission_poll_interval}s) is not shorter "
                f"than provision_timeout ({self.provision_timeout}s)"
            )

        return warnings


_config: TenancyConfig | None = None


def get_config() -> TenancyConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = TenancyConfig()
    return _config
