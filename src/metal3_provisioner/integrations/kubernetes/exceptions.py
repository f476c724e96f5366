"""Exceptions raised by the Kubernetes integration layer.

Every ``ApiException`` coming out of the kubernetes client is translated into
one of these by :meth:`KubernetesClient.translate_api_exception`, so callers
never have to inspect raw HTTP status codes.
"""

from __future__ import annotations


def _describe(
    resource_type: str | None,
    resource_name: str | None,
    namespace: str | None,
    problem: str,
) -> str | None:
    """Build "<Kind> '<name>' <problem> [in namespace '<ns>']", or None without a name."""
    if not (resource_type and resource_name):
        return None
    text = f"{resource_type} '{resource_name}' {problem}"
    if namespace:
        text += f" in namespace '{namespace}'"
    return text


class KubernetesError(Exception):
    """Base exception for Kubernetes operations.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code from the API server (if applicable).
        resource_type: Kind of the resource involved (e.g. "Deployment").
        resource_name: Name of the resource involved.
        namespace: Namespace of the resource (if applicable).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def location(self) -> str | None:
        """``[Kind/name in namespace]`` when the resource is known."""
        if not (self.resource_type and self.resource_name):
            return None
        where = f" in {self.namespace}" if self.namespace else ""
        return f"[{self.resource_type}/{self.resource_name}{where}]"

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        if self.location:
            parts.append(self.location)
        return " ".join(parts)


class KubernetesConnectionError(KubernetesError):
    """Raised when the API server cannot be reached or kubeconfig is unusable."""

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """Raised on 401/403 responses."""

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int | None = 401,
        reason: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
        self.reason = reason


class KubernetesNotFoundError(KubernetesError):
    """Raised when the requested resource does not exist (404)."""

    def __init__(
        self,
        message: str = "Kubernetes resource not found",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(
            message=_describe(resource_type, resource_name, namespace, "not found") or message,
            status_code=404,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesConflictError(KubernetesError):
    """Raised on 409 responses (already exists, or stale resourceVersion)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        problem = "conflicts with the stored object"
        super().__init__(
            message=_describe(resource_type, resource_name, namespace, problem) or message,
            status_code=409,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesValidationError(KubernetesError):
    """Raised when the API server rejects an object (400/422).

    Updating a Deployment whose ``spec.selector`` differs from the stored one
    ends up here: the selector field is immutable.

    Attributes:
        causes: ``"<field>: <message>"`` entries from the Status details.
    """

    def __init__(
        self,
        message: str = "Invalid resource specification",
        causes: list[str] | None = None,
        status_code: int | None = 422,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
        self.causes = causes or []

    @property
    def immutable_fields(self) -> list[str]:
        """Fields the server refused to change in place."""
        return [cause.split(":", 1)[0] for cause in self.causes if "field is immutable" in cause]


class KubernetesTimeoutError(KubernetesError):
    """Raised when waiting on the cluster exceeded its deadline."""

    def __init__(
        self,
        message: str = "Kubernetes operation timed out",
        timeout_seconds: int | None = None,
    ) -> None:
        if timeout_seconds:
            message = f"{message} (after {timeout_seconds}s)"
        super().__init__(message=message)
        self.timeout_seconds = timeout_seconds
