"""Errors raised while rendering or reconciling the metal3 workload."""

from __future__ import annotations

from metal3_provisioner.provisioning.models import RolloutState


class ProvisioningError(Exception):
    """Base exception for metal3 workload operations."""

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConstructionDefect(ProvisioningError):
    """A container definition references something that was never declared.

    Raised for mounts of volumes missing from the catalog and for duplicate
    environment variable names. This is a programming error in the renderer,
    not a runtime condition.
    """


class DeploymentApplyError(ProvisioningError):
    """The API server rejected the rendered Deployment.

    Attributes:
        original_error: The error returned by the apply call.
    """

    def __init__(self, message: str, original_error: Exception) -> None:
        super().__init__(message, details=str(original_error))
        self.original_error = original_error


class SelectorConflictError(DeploymentApplyError):
    """The apply failed because the stored Deployment has another selector.

    The stored Deployment has been deleted; the next reconcile recreates it.
    """


class DeploymentLookupError(ProvisioningError):
    """Reading the Deployment back from the cluster failed.

    Attributes:
        state: The state to assume while the Deployment cannot be read.
        original_error: The error returned by the read.
    """

    def __init__(self, message: str, original_error: Exception) -> None:
        super().__init__(message, details=str(original_error))
        self.original_error = original_error
        self.state = RolloutState.REPLICA_FAILURE


class DeploymentDeleteError(ProvisioningError):
    """Deleting the Deployment failed.

    Attributes:
        original_error: The error returned by the delete call.
    """

    def __init__(self, message: str, original_error: Exception) -> None:
        super().__init__(message, details=str(original_error))
        self.original_error = original_error
