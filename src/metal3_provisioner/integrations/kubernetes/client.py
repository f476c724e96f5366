"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig/in-cluster
loading, lazy API group initialization, consistent error translation and the
three Deployment operations the provisioning reconciler needs: get, apply and
delete.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

import structlog

from metal3_provisioner.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)
from metal3_provisioner.integrations.kubernetes.serialization import (
    SPEC_HASH_ANNOTATION,
    parse_status_body,
    spec_hash,
)

if TYPE_CHECKING:
    from kubernetes.client import AppsV1Api, CoreV1Api, V1Deployment

    from metal3_provisioner.integrations.kubernetes.config import KubernetesConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client used by the provisioning reconciler.

    Example:
        ```python
        from metal3_provisioner.integrations.kubernetes import (
            KubernetesClient,
            KubernetesConfig,
        )

        with KubernetesClient(KubernetesConfig.from_env()) as client:
            deployment = client.get_deployment("openshift-machine-api", "metal3")
        ```
    """

    def __init__(self, k8s_config: KubernetesConfig) -> None:
        """Initialize the client and load cluster credentials.

        Tries the configured kubeconfig first and falls back to the in-cluster
        service account, which is how the operator itself runs.

        Args:
            k8s_config: Cluster connection settings.
        """
        self._config = k8s_config
        self._current_context: str | None = None

        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None

        self._load_config()

        logger.info(
            "kubernetes_client_initialized",
            context=self._current_context,
            default_namespace=k8s_config.cluster.namespace,
        )

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        active_context = self._config.cluster.context
        kubeconfig_path = self._config.cluster.kubeconfig

        try:
            config.load_kube_config(
                config_file=kubeconfig_path,
                context=active_context,
            )
            self._current_context = active_context
            logger.debug("loaded_kubeconfig", context=active_context, kubeconfig=kubeconfig_path)
        except ConfigException:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._core_v1 = None
        self._apps_v1 = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (events, config maps, secrets)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api()
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api()
        return self._apps_v1

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a KubernetesError subclass.

        Args:
            e: The original exception.
            resource_type: Kind of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status in (400, 422):
            message, causes = parse_status_body(e.body)
            return KubernetesValidationError(
                message=message or e.reason or "Validation failed",
                causes=causes,
                status_code=status,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Deployment Operations
    # =========================================================================

    def get_deployment(self, namespace: str, name: str) -> V1Deployment:
        """Read a Deployment.

        Raises:
            KubernetesNotFoundError: If the Deployment does not exist.
            KubernetesError: For any other API failure.
        """
        try:
            return self.apps_v1.read_namespaced_deployment(
                name=name,
                namespace=namespace,
                _request_timeout=self.timeout,
            )
        except Exception as e:
            raise self.translate_api_exception(e, "Deployment", name, namespace) from e

    def apply_deployment(
        self,
        required: V1Deployment,
        expected_generation: int,
    ) -> tuple[V1Deployment, bool]:
        """Create or update a Deployment, skipping no-op updates.

        The rendered spec is hashed into the ``operator.openshift.io/spec-hash``
        annotation. An update is skipped when the stored object still carries
        the same hash and its generation equals ``expected_generation`` (i.e.
        nobody else modified it since we last wrote it). Pass ``-1`` when no
        generation has been recorded yet.

        Args:
            required: The rendered Deployment.
            expected_generation: Generation recorded after the previous write.

        Returns:
            The Deployment as returned by the API server, and whether it was
            created or modified.

        Raises:
            KubernetesError: If the API server rejects the create or update.
        """
        desired = copy.deepcopy(required)
        namespace = desired.metadata.namespace
        name = desired.metadata.name
        desired_hash = spec_hash(desired)
        desired.metadata.annotations = {
            **(desired.metadata.annotations or {}),
            SPEC_HASH_ANNOTATION: desired_hash,
        }

        try:
            existing = self.get_deployment(namespace, name)
        except KubernetesNotFoundError:
            logger.info("creating_deployment", name=name, namespace=namespace)
            try:
                created = self.apps_v1.create_namespaced_deployment(
                    namespace=namespace,
                    body=desired,
                    _request_timeout=self.timeout,
                )
            except Exception as e:
                raise self.translate_api_exception(e, "Deployment", name, namespace) from e
            return created, True

        existing_annotations = existing.metadata.annotations or {}
        if (
            expected_generation >= 0
            and existing.metadata.generation == expected_generation
            and existing_annotations.get(SPEC_HASH_ANNOTATION) == desired_hash
        ):
            logger.debug(
                "deployment_unchanged",
                name=name,
                namespace=namespace,
                generation=expected_generation,
            )
            return existing, False

        # Keep labels and annotations added by other actors; ours win on conflict
        desired.metadata.labels = {
            **(existing.metadata.labels or {}),
            **(desired.metadata.labels or {}),
        }
        desired.metadata.annotations = {**existing_annotations, **desired.metadata.annotations}
        desired.metadata.resource_version = existing.metadata.resource_version

        logger.info(
            "updating_deployment",
            name=name,
            namespace=namespace,
            previous_generation=existing.metadata.generation,
        )
        try:
            updated = self.apps_v1.replace_namespaced_deployment(
                name=name,
                namespace=namespace,
                body=desired,
                _request_timeout=self.timeout,
            )
        except Exception as e:
            raise self.translate_api_exception(e, "Deployment", name, namespace) from e
        return updated, True

    def delete_deployment(self, namespace: str, name: str) -> None:
        """Delete a Deployment. A Deployment that is already gone is not an error."""
        try:
            self.apps_v1.delete_namespaced_deployment(
                name=name,
                namespace=namespace,
                _request_timeout=self.timeout,
            )
        except Exception as e:
            error = self.translate_api_exception(e, "Deployment", name, namespace)
            if isinstance(error, KubernetesNotFoundError):
                logger.debug("deployment_already_absent", name=name, namespace=namespace)
                return
            raise error from e

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def default_namespace(self) -> str:
        """Get the default namespace from config."""
        return self._config.cluster.namespace

    @property
    def timeout(self) -> int:
        """Get the configured request timeout."""
        return self._config.cluster.timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        self._invalidate_api_cache()
        logger.debug("kubernetes_client_closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
