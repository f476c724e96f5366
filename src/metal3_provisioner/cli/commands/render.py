"""Render command: print the metal3 Deployment without touching the cluster."""

from __future__ import annotations

import structlog
import typer

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
    load_provisioning_info,
)
from metal3_provisioner.integrations.kubernetes.serialization import to_yaml
from metal3_provisioner.provisioning.models import NetworkStack
from metal3_provisioner.provisioning.pod_template import new_metal3_deployment

logger = structlog.get_logger()


def render(
    config: ConfigOption,
    images: ImagesOption,
    namespace: NamespaceOption = None,
    mac: MacOption = None,
    ssh_key_file: SshKeyFileOption = None,
    network_stack: NetworkStackOption = NetworkStack.V4,
    http_proxy: HttpProxyOption = None,
    https_proxy: HttpsProxyOption = None,
    no_proxy: NoProxyOption = None,
) -> None:
    """Print the metal3 Deployment as YAML.

    Examples:
        metal3-provisioner render -c provisioning.yaml -i images.json
        metal3-provisioner render -c provisioning.yaml -i images.json --mac 52:54:00:aa:bb:cc
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
    deployment = new_metal3_deployment(info)
    logger.debug(
        "rendered_deployment",
        namespace=info.namespace,
        init_containers=len(deployment.spec.template.spec.init_containers or []),
        containers=len(deployment.spec.template.spec.containers),
    )
    # Plain echo: the YAML must not be wrapped or styled
    typer.echo(to_yaml(deployment), nl=False)
