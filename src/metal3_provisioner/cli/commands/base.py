"""Shared options, input loading and error handling for the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console

from metal3_provisioner.integrations.kubernetes.client import KubernetesClient
from metal3_provisioner.integrations.kubernetes.config import KubernetesConfig
from metal3_provisioner.integrations.kubernetes.events import (
    EventRecorder,
    KubernetesEventRecorder,
    LoggingEventRecorder,
)
from metal3_provisioner.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)
from metal3_provisioner.provisioning.exceptions import (
    DeploymentDeleteError,
    ProvisioningError,
    SelectorConflictError,
)
from metal3_provisioner.provisioning.models import (
    ContainerImages,
    ExternalFacts,
    NetworkStack,
    OwnerInfo,
    ProvisioningInfo,
    ProxySettings,
    load_provisioning_file,
)
from metal3_provisioner.services.kubernetes.deployment_reconciler import DeploymentReconciler

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Provisioning spec, or a whole Provisioning resource, as YAML",
        envvar="METAL3_PROVISIONING_CONFIG",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

ImagesOption = Annotated[
    Path,
    typer.Option(
        "--images",
        "-i",
        help="images.json with the container image references",
        envvar="METAL3_IMAGES",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Target namespace (defaults to METAL3_K8S_NAMESPACE or 'openshift-machine-api')",
    ),
]

MacOption = Annotated[
    list[str] | None,
    typer.Option(
        "--mac",
        help="MAC address of a control-plane host (repeatable)",
    ),
]

SshKeyFileOption = Annotated[
    Path | None,
    typer.Option(
        "--ssh-key-file",
        help="Public SSH key installed in the ironic ramdisk",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

NetworkStackOption = Annotated[
    NetworkStack,
    typer.Option(
        "--network-stack",
        help="IP stack of the machine network: v4, v6 or dual",
        case_sensitive=False,
    ),
]

HttpProxyOption = Annotated[
    str | None,
    typer.Option("--http-proxy", help="Cluster HTTP proxy"),
]

HttpsProxyOption = Annotated[
    str | None,
    typer.Option("--https-proxy", help="Cluster HTTPS proxy"),
]

NoProxyOption = Annotated[
    str | None,
    typer.Option("--no-proxy", help="Hosts that bypass the proxy"),
]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Skip confirmation prompts",
    ),
]


# =============================================================================
# Input Loading
# =============================================================================


def load_cluster_config() -> KubernetesConfig:
    """Cluster connection settings, from ``METAL3_K8S_*`` variables.

    Raises:
        typer.BadParameter: If a variable holds an invalid value.
    """
    try:
        return KubernetesConfig.from_env()
    except ValidationError as e:
        raise typer.BadParameter(str(e), param_hint="METAL3_K8S_*") from e


def load_provisioning_info(
    config: Path,
    images: Path,
    namespace: str | None,
    macs: list[str] | None = None,
    ssh_key_file: Path | None = None,
    network_stack: NetworkStack = NetworkStack.V4,
    http_proxy: str | None = None,
    https_proxy: str | None = None,
    no_proxy: str | None = None,
) -> ProvisioningInfo:
    """Build the reconcile inputs from the command-line arguments.

    Raises:
        typer.BadParameter: If a file cannot be parsed or validated.
    """
    try:
        provisioning_config, owner = load_provisioning_file(config)
    except (ValueError, ValidationError) as e:
        raise typer.BadParameter(str(e), param_hint="--config") from e
    try:
        container_images = ContainerImages.from_file(images)
    except (ValueError, ValidationError) as e:
        raise typer.BadParameter(str(e), param_hint="--images") from e

    proxy = None
    if http_proxy or https_proxy or no_proxy:
        proxy = ProxySettings(http_proxy=http_proxy, https_proxy=https_proxy, no_proxy=no_proxy)

    ssh_key = ssh_key_file.read_text(encoding="utf-8").strip() if ssh_key_file else ""

    facts = ExternalFacts(
        images=container_images,
        master_mac_addresses=tuple(macs or ()),
        ssh_key=ssh_key,
        network_stack=network_stack,
        proxy=proxy,
    )
    info = ProvisioningInfo(
        config=provisioning_config,
        facts=facts,
        namespace=namespace or load_cluster_config().cluster.namespace,
        owner=owner,
    )
    logger.debug(
        "loaded_provisioning_info",
        config=str(config),
        namespace=info.namespace,
        network=provisioning_config.provisioning_network.value,
        owner=owner.name if owner else None,
    )
    return info


def make_event_recorder(client: KubernetesClient, owner: OwnerInfo | None) -> EventRecorder:
    """Post events on the owning Provisioning resource when there is one."""
    if owner is None:
        return LoggingEventRecorder()

    from kubernetes.client import V1ObjectReference

    return KubernetesEventRecorder(
        client,
        V1ObjectReference(
            api_version=owner.api_version,
            kind=owner.kind,
            name=owner.name,
            uid=owner.uid,
        ),
    )


def get_reconciler(
    owner: OwnerInfo | None = None,
) -> tuple[KubernetesClient, DeploymentReconciler]:
    """Connect to the cluster and build a reconciler on top of the client."""
    client = KubernetesClient(load_cluster_config())
    return client, DeploymentReconciler(client, make_event_recorder(client, owner))


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> NoReturn:
    """Print a cluster error and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        err_console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        err_console.print(f"  {error.message}")
        if error.original_error:
            err_console.print(f"  Cause: {error.original_error}")
        err_console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        err_console.print("[red]Error:[/red] Authentication/authorization failed")
        err_console.print(f"  {error.message}")
        err_console.print("\n[dim]Hint: Check your credentials or RBAC permissions.[/dim]")

    elif isinstance(error, KubernetesNotFoundError):
        err_console.print("[red]Error:[/red] Resource not found")
        err_console.print(f"  {error.message}")

    elif isinstance(error, KubernetesValidationError):
        err_console.print("[red]Error:[/red] Validation failed")
        err_console.print(f"  {error.message}")
        for cause in error.causes:
            err_console.print(f"  - {cause}")

    elif isinstance(error, KubernetesTimeoutError):
        err_console.print("[red]Error:[/red] Operation timed out")
        err_console.print(f"  {error.message}")

    else:
        err_console.print(f"[red]Error:[/red] {error.message}")
        if error.status_code:
            err_console.print(f"  HTTP Status: {error.status_code}")

    raise typer.Exit(1)


def handle_provisioning_error(error: ProvisioningError) -> NoReturn:
    """Print a reconcile error and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, SelectorConflictError):
        err_console.print(
            "[yellow]Deployment had an outdated pod selector and was deleted[/yellow]"
        )
        err_console.print(f"  {error}")
        err_console.print("\n[dim]Hint: Run apply again to recreate it.[/dim]")
    elif isinstance(error, DeploymentDeleteError):
        err_console.print("[red]Error:[/red] Could not delete the Deployment")
        err_console.print(f"  {error}")
    else:
        err_console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)


def confirm_delete(name: str, namespace: str) -> bool:
    """Prompt user to confirm deletion."""
    return typer.confirm(
        f"Are you sure you want to delete Deployment '{name}' in namespace '{namespace}'?",
        default=False,
    )
