"""Kubernetes service managers."""

from metal3_provisioner.services.kubernetes.base import K8sBaseManager
from metal3_provisioner.services.kubernetes.deployment_reconciler import (
    ROLLOUT_TIMEOUT,
    DeploymentReconciler,
)

__all__ = ["ROLLOUT_TIMEOUT", "DeploymentReconciler", "K8sBaseManager"]
