"""Apply command: create or update the metal3 Deployment."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Annotated

import structlog
import typer
from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from metal3_provisioner.cli.commands.base import (
    ConfigOption,
    HttpProxyOption,
    HttpsProxyOption,
    ImagesOption,
    MacOption,
    NamespaceOption,
    NetworkStackOption,
    NoProxyOption,
    SshKeyFileOption,
    console,
    get_reconciler,
    handle_k8s_error,
    handle_provisioning_error,
    load_cluster_config,
    load_provisioning_info,
)
from metal3_provisioner.integrations.kubernetes.config import RolloutWaitConfig
from metal3_provisioner.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesTimeoutError,
)
from metal3_provisioner.provisioning.exceptions import ProvisioningError
from metal3_provisioner.provisioning.models import NetworkStack, RolloutState
from metal3_provisioner.services.kubernetes.deployment_reconciler import DeploymentReconciler

logger = structlog.get_logger()


def wait_for_rollout(
    reconciler: DeploymentReconciler,
    namespace: str,
    wait_config: RolloutWaitConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> RolloutState:
    """Poll the rollout state until it leaves Progressing.

    Raises:
        KubernetesTimeoutError: If the rollout is still Progressing when the
            wait times out.
        DeploymentLookupError: If the Deployment cannot be read.
    """
    max_attempts = wait_config.timeout // wait_config.poll_interval + 1
    retrying = Retrying(
        retry=retry_if_result(lambda state: state == RolloutState.PROGRESSING),
        stop=stop_after_delay(wait_config.timeout) | stop_after_attempt(max_attempts),
        wait=wait_fixed(wait_config.poll_interval),
        sleep=sleep,
        before_sleep=lambda retry_state: logger.debug(
            "waiting_for_rollout",
            namespace=namespace,
            attempt=retry_state.attempt_number,
        ),
    )
    try:
        return retrying(reconciler.get_deployment_state, namespace)
    except RetryError as e:
        raise KubernetesTimeoutError(
            "Metal3 Deployment rollout did not finish",
            timeout_seconds=wait_config.timeout,
        ) from e


def apply(
    config: ConfigOption,
    images: ImagesOption,
    namespace: NamespaceOption = None,
    mac: MacOption = None,
    ssh_key_file: SshKeyFileOption = None,
    network_stack: NetworkStackOption = NetworkStack.V4,
    http_proxy: HttpProxyOption = None,
    https_proxy: HttpsProxyOption = None,
    no_proxy: NoProxyOption = None,
    wait: Annotated[
        bool,
        typer.Option("--wait", "-w", help="Wait until the rollout leaves Progressing"),
    ] = False,
) -> None:
    """Create or update the metal3 Deployment.

    Examples:
        metal3-provisioner apply -c provisioning.yaml -i images.json
        metal3-provisioner apply -c provisioning.yaml -i images.json --wait
    """
    info = load_provisioning_info(
        config,
        images,
        namespace,
        macs=mac,
        ssh_key_file=ssh_key_file,
        network_stack=network_stack,
        http_proxy=http_proxy,
        https_proxy=https_proxy,
        no_proxy=no_proxy,
    )
    state = None
    try:
        client, reconciler = get_reconciler(info.owner)
        with client:
            changed = reconciler.ensure_deployment(info)
            if changed:
                console.print(f"[green]Deployment '{info.namespace}/metal3' applied[/green]")
            else:
                console.print(f"[dim]Deployment '{info.namespace}/metal3' unchanged[/dim]")

            if wait:
                wait_config = load_cluster_config().rollout_wait
                with console.status("Waiting for rollout..."):
                    state = wait_for_rollout(reconciler, info.namespace, wait_config)
                console.print(f"Rollout state: [bold]{state.value}[/bold]")
    except KubernetesError as e:
        handle_k8s_error(e)
    except ProvisioningError as e:
        handle_provisioning_error(e)

    if state == RolloutState.REPLICA_FAILURE:
        raise typer.Exit(2)
