"""Cluster connection settings for the Kubernetes integration."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_NAMESPACE = "openshift-machine-api"


class ClusterConfig(BaseModel):
    """How to reach the cluster the metal3 workload runs in.

    ``kubeconfig`` and ``context`` left unset defer to the kubernetes client's
    own defaults (``$KUBECONFIG``, then ``~/.kube/config``, and its current
    context).
    """

    model_config = ConfigDict(extra="forbid")

    context: str | None = None
    kubeconfig: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    timeout: int = 300

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser()) if v else None


class RolloutWaitConfig(BaseModel):
    """How the CLI polls a rollout when asked to wait for it."""

    model_config = ConfigDict(extra="forbid")

    poll_interval: int = 10
    timeout: int = 600

    @field_validator("poll_interval", "timeout")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("durations must be positive")
        return v


class KubernetesConfig(BaseModel):
    """Complete Kubernetes connection configuration."""

    model_config = ConfigDict(extra="forbid")

    cluster: ClusterConfig = ClusterConfig()
    rollout_wait: RolloutWaitConfig = RolloutWaitConfig()

    @classmethod
    def from_env(cls) -> KubernetesConfig:
        """Create configuration from environment variables.

        Supported environment variables:
            METAL3_K8S_CONTEXT: kubeconfig context to use
            METAL3_K8S_KUBECONFIG: kubeconfig path
            METAL3_K8S_NAMESPACE: Target namespace
            METAL3_K8S_TIMEOUT: Request timeout in seconds

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        cluster: dict[str, str] = {}
        for field, variable in (
            ("context", "METAL3_K8S_CONTEXT"),
            ("kubeconfig", "METAL3_K8S_KUBECONFIG"),
            ("namespace", "METAL3_K8S_NAMESPACE"),
            ("timeout", "METAL3_K8S_TIMEOUT"),
        ):
            if value := os.environ.get(variable):
                cluster[field] = value
        return cls.model_validate({"cluster": cluster})
