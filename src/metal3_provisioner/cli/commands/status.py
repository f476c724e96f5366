"""Status command: report the rollout state of the metal3 Deployment."""

from __future__ import annotations

from typing import Annotated

import typer
import yaml
from rich.table import Table

from metal3_provisioner.cli.commands.base import (
    NamespaceOption,
    console,
    get_reconciler,
    handle_k8s_error,
    handle_provisioning_error,
)
from metal3_provisioner.integrations.kubernetes.exceptions import KubernetesError
from metal3_provisioner.integrations.kubernetes.serialization import (
    strip_server_fields,
    to_manifest,
)
from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.exceptions import DeploymentLookupError, ProvisioningError
from metal3_provisioner.provisioning.models import RolloutState

STATE_STYLES = {
    RolloutState.AVAILABLE: "green",
    RolloutState.PROGRESSING: "yellow",
    RolloutState.REPLICA_FAILURE: "red",
    RolloutState.UNKNOWN: "dim",
}


def status(
    namespace: NamespaceOption = None,
    manifest: Annotated[
        bool,
        typer.Option("--manifest", help="Also print the stored Deployment as YAML"),
    ] = False,
) -> None:
    """Show the rollout state of the metal3 Deployment.

    Exits with code 2 when the rollout failed.

    Examples:
        metal3-provisioner status
        metal3-provisioner status -n openshift-machine-api --manifest
    """
    try:
        client, reconciler = get_reconciler()
        with client:
            ns = namespace or client.default_namespace
            stored_readable = True
            try:
                state = reconciler.get_deployment_state(ns)
            except DeploymentLookupError as e:
                stored_readable = False
                console.print(f"[red]Cannot read Deployment {ns}/{c.DEPLOYMENT_NAME}:[/red] {e}")
                state = e.state

            table = Table(title="Metal3 Deployment")
            table.add_column("Namespace", style="cyan", no_wrap=True)
            table.add_column("Name", style="cyan", no_wrap=True)
            table.add_column("State")
            table.add_row(
                ns,
                c.DEPLOYMENT_NAME,
                f"[{STATE_STYLES[state]}]{state.value}[/{STATE_STYLES[state]}]",
            )
            console.print(table)

            if manifest and stored_readable:
                stored = client.get_deployment(ns, c.DEPLOYMENT_NAME)
                typer.echo(
                    yaml.safe_dump(
                        strip_server_fields(to_manifest(stored)),
                        default_flow_style=False,
                        sort_keys=False,
                    ),
                    nl=False,
                )
    except KubernetesError as e:
        handle_k8s_error(e)
    except ProvisioningError as e:
        handle_provisioning_error(e)

    if state == RolloutState.REPLICA_FAILURE:
        raise typer.Exit(2)
