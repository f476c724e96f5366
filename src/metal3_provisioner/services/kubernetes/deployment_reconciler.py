"""Reconciler for the metal3 Deployment.

Renders the Deployment from a :class:`ProvisioningInfo`, applies it through
the cluster client, repairs Deployments stuck on an outdated pod selector and
reports the rollout state with a timeout.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, NoReturn

from metal3_provisioner.integrations.kubernetes.events import LoggingEventRecorder
from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.exceptions import (
    DeploymentApplyError,
    DeploymentDeleteError,
    DeploymentLookupError,
    SelectorConflictError,
)
from metal3_provisioner.provisioning.generations import (
    expected_deployment_generation,
    set_deployment_generation,
)
from metal3_provisioner.provisioning.models import RolloutState
from metal3_provisioner.provisioning.pod_template import new_metal3_deployment
from metal3_provisioner.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from kubernetes.client import V1Deployment

    from metal3_provisioner.integrations.kubernetes.client import KubernetesClient
    from metal3_provisioner.integrations.kubernetes.events import EventRecorder
    from metal3_provisioner.provisioning.models import ProvisioningInfo

ROLLOUT_TIMEOUT = timedelta(minutes=5)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def deployment_condition(deployment: V1Deployment) -> RolloutState:
    """First condition reported as ``"True"``; Progressing when there is none."""
    conditions = (deployment.status.conditions if deployment.status else None) or []
    for condition in conditions:
        if condition.status == "True":
            try:
                return RolloutState(condition.type)
            except ValueError:
                return RolloutState.UNKNOWN
    return RolloutState.PROGRESSING


def _selector_labels(selector: Any) -> dict[str, str] | None:
    if selector is None:
        return None
    return dict(selector.match_labels or {})


def _selector_expressions(selector: Any) -> list[Any]:
    if selector is None:
        return []
    return [
        (expr.key, expr.operator, tuple(expr.values or ()))
        for expr in selector.match_expressions or []
    ]


def selectors_equal(left: Any, right: Any) -> bool:
    """Compare two label selectors by value."""
    return _selector_labels(left) == _selector_labels(right) and _selector_expressions(
        left
    ) == _selector_expressions(right)


class DeploymentReconciler(K8sBaseManager):
    """Keeps the metal3 Deployment in the state the provisioning config asks for.

    Rollout start times are tracked per workload identity ``(namespace,
    name)``. Reconciles of the same identity are serialised; different
    identities proceed independently. Nothing here retries: a failed call
    is reported to the caller, which requeues.

    Example:
        ```python
        reconciler = DeploymentReconciler(client)
        changed = reconciler.ensure_deployment(info)
        state = reconciler.get_deployment_state(info.namespace)
        ```
    """

    _entity_name = "metal3_deployment"

    def __init__(
        self,
        client: KubernetesClient,
        recorder: EventRecorder | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize the reconciler.

        Args:
            client: Kubernetes API client instance.
            recorder: Sink for human-readable events; logs only when omitted.
            clock: Returns the current time as an aware datetime.
        """
        super().__init__(client)
        self._recorder = recorder or LoggingEventRecorder()
        self._clock = clock
        # Rollouts started before this reconciler existed are timed from here
        self._created_at = clock()
        self._rollout_started: dict[tuple[str, str], datetime] = {}
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, identity: tuple[str, str]) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(identity, threading.Lock())

    # =========================================================================
    # Apply
    # =========================================================================

    def ensure_deployment(self, info: ProvisioningInfo) -> bool:
        """Render and apply the metal3 Deployment.

        Args:
            info: Reconcile inputs. ``info.generations`` is updated in place
                when the Deployment was created or modified.

        Returns:
            True if the Deployment was created or modified.

        Raises:
            SelectorConflictError: The stored Deployment had an outdated pod
                selector and was deleted; the next reconcile recreates it.
            DeploymentDeleteError: Deleting such a Deployment failed.
            DeploymentApplyError: The apply failed for any other reason.
        """
        deployment = new_metal3_deployment(info)
        namespace = deployment.metadata.namespace
        name = deployment.metadata.name
        identity = (namespace, name)
        expected_generation = expected_deployment_generation(deployment, info.generations)

        with self._lock_for(identity):
            self._rollout_started[identity] = self._clock()
            self._log.info(
                "applying_deployment",
                name=name,
                namespace=namespace,
                expected_generation=expected_generation,
            )
            try:
                applied, changed = self._client.apply_deployment(deployment, expected_generation)
            except Exception as e:
                self._recorder.event(
                    "Warning", "DeploymentApplyFailed", f"Failed to apply Deployment {name}: {e}"
                )
                self._resolve_apply_failure(deployment, e)

            if changed:
                set_deployment_generation(info.generations, applied)
                self._recorder.event(
                    "Normal",
                    "DeploymentUpdated",
                    f"Deployment {namespace}/{name} applied at generation "
                    f"{applied.metadata.generation}",
                )
            self._log.info(
                "applied_deployment",
                name=name,
                namespace=namespace,
                changed=changed,
            )
            return changed

    def _resolve_apply_failure(self, deployment: V1Deployment, error: Exception) -> NoReturn:
        """Raise the error describing a failed apply.

        A stored Deployment whose selector differs from the rendered one can
        never be updated in place, since selectors are immutable; it is
        deleted so that the next reconcile recreates it.
        """
        namespace = deployment.metadata.namespace
        name = deployment.metadata.name
        message = f"Unable to apply Metal3 deployment {namespace}/{name}"

        try:
            existing = self._client.get_deployment(namespace, name)
        except Exception as get_error:
            self._log.warning(
                "deployment_selector_check_failed",
                name=name,
                namespace=namespace,
                error=str(get_error),
            )
            raise DeploymentApplyError(message, error) from error

        if selectors_equal(existing.spec.selector, deployment.spec.selector):
            raise DeploymentApplyError(message, error) from error

        self._log.warning(
            "deployment_selector_conflict",
            name=name,
            namespace=namespace,
            existing=_selector_labels(existing.spec.selector),
            desired=_selector_labels(deployment.spec.selector),
        )
        try:
            self._client.delete_deployment(namespace, name)
        except Exception as delete_error:
            raise DeploymentDeleteError(
                f"Unable to delete Metal3 deployment {namespace}/{name} "
                "with incorrect pod selector",
                delete_error,
            ) from delete_error

        self._recorder.event(
            "Warning",
            "DeploymentSelectorConflict",
            f"Deleted Deployment {namespace}/{name} with an outdated pod selector",
        )
        raise SelectorConflictError(message, error) from error

    # =========================================================================
    # State
    # =========================================================================

    def get_deployment_state(self, namespace: str | None = None) -> RolloutState:
        """Report the rollout state of the metal3 Deployment.

        A rollout still Progressing five minutes after the last apply is
        reported as ReplicaFailure.

        Raises:
            DeploymentLookupError: The Deployment could not be read; its
                ``state`` is ReplicaFailure.
        """
        ns = self._resolve_namespace(namespace)
        name = c.DEPLOYMENT_NAME
        identity = (ns, name)
        try:
            existing = self._client.get_deployment(ns, name)
        except Exception as e:
            self._log.warning("deployment_lookup_failed", name=name, namespace=ns, error=str(e))
            raise DeploymentLookupError(
                f"Unable to read Metal3 deployment {ns}/{name}", e
            ) from e

        state = deployment_condition(existing)
        if state != RolloutState.PROGRESSING:
            return state

        with self._lock_for(identity):
            started = self._rollout_started.get(identity, self._created_at)
        elapsed = self._clock() - started
        if elapsed >= ROLLOUT_TIMEOUT:
            self._log.warning(
                "deployment_rollout_timed_out",
                name=name,
                namespace=ns,
                elapsed_seconds=int(elapsed.total_seconds()),
            )
            return RolloutState.REPLICA_FAILURE
        return state

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_deployment(self, namespace: str | None = None) -> None:
        """Delete the metal3 Deployment; succeeds if it is already gone.

        Raises:
            DeploymentDeleteError: The delete call failed.
        """
        ns = self._resolve_namespace(namespace)
        name = c.DEPLOYMENT_NAME
        self._log.info("deleting_deployment", name=name, namespace=ns)
        try:
            self._client.delete_deployment(ns, name)
        except Exception as e:
            raise DeploymentDeleteError(f"Unable to delete Metal3 deployment {ns}/{name}", e) from e
        with self._lock_for((ns, name)):
            self._rollout_started.pop((ns, name), None)
        self._log.info("deleted_deployment", name=name, namespace=ns)
