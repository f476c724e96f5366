"""Delete command: remove the metal3 Deployment."""

from __future__ import annotations

import typer

from metal3_provisioner.cli.commands.base import (
    ForceOption,
    NamespaceOption,
    confirm_delete,
    console,
    get_reconciler,
    handle_k8s_error,
    handle_provisioning_error,
)
from metal3_provisioner.integrations.kubernetes.exceptions import KubernetesError
from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.exceptions import ProvisioningError


def delete(
    namespace: NamespaceOption = None,
    force: ForceOption = False,
) -> None:
    """Delete the metal3 Deployment. Deleting an absent Deployment succeeds.

    Examples:
        metal3-provisioner delete
        metal3-provisioner delete -n openshift-machine-api --force
    """
    try:
        client, reconciler = get_reconciler()
        with client:
            ns = namespace or client.default_namespace
            if not force and not confirm_delete(c.DEPLOYMENT_NAME, ns):
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0)
            reconciler.delete_deployment(ns)
            console.print(f"[green]Deployment '{ns}/{c.DEPLOYMENT_NAME}' deleted[/green]")
    except KubernetesError as e:
        handle_k8s_error(e)
    except ProvisioningError as e:
        handle_provisioning_error(e)
