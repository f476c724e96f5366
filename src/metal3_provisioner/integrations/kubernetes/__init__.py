"""Kubernetes integration - API client, connection settings and event sinks."""

from metal3_provisioner.integrations.kubernetes.client import KubernetesClient
from metal3_provisioner.integrations.kubernetes.config import (
    ClusterConfig,
    KubernetesConfig,
    RolloutWaitConfig,
)
from metal3_provisioner.integrations.kubernetes.events import (
    EventRecorder,
    KubernetesEventRecorder,
    LoggingEventRecorder,
)
from metal3_provisioner.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

__all__ = [
    "ClusterConfig",
    "EventRecorder",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConfig",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesEventRecorder",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
    "LoggingEventRecorder",
    "RolloutWaitConfig",
]
