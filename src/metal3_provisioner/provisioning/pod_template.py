"""Pod template and Deployment descriptor for the metal3 workload."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kubernetes.client import (
    V1Deployment,
    V1DeploymentSpec,
    V1DeploymentStrategy,
    V1LabelSelector,
    V1ObjectMeta,
    V1OwnerReference,
    V1PodSecurityContext,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Toleration,
)

from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.containers import (
    assemble_containers,
    assemble_init_containers,
    inject_proxy_and_ca,
)
from metal3_provisioner.provisioning.volumes import VolumeCatalog

if TYPE_CHECKING:
    from metal3_provisioner.provisioning.models import OwnerInfo, ProvisioningInfo


def workload_labels() -> dict[str, str]:
    """Labels identifying the metal3 pods; also the Deployment selector."""
    return {
        "k8s-app": c.METAL3_APP_NAME,
        c.CBO_LABEL_NAME: c.STATE_SERVICE,
    }


def workload_selector() -> V1LabelSelector:
    return V1LabelSelector(match_labels=workload_labels())


def tolerations() -> list[V1Toleration]:
    """Run on tainted control-plane nodes and ride out short node outages."""
    return [
        V1Toleration(key=c.MASTER_NODE_ROLE, effect="NoSchedule", operator="Exists"),
        V1Toleration(key="CriticalAddonsOnly", operator="Exists"),
        V1Toleration(
            key="node.kubernetes.io/not-ready",
            effect="NoExecute",
            operator="Exists",
            toleration_seconds=c.TOLERATION_SECONDS,
        ),
        V1Toleration(
            key="node.kubernetes.io/unreachable",
            effect="NoExecute",
            operator="Exists",
            toleration_seconds=c.TOLERATION_SECONDS,
        ),
    ]


def new_pod_template_spec(
    info: ProvisioningInfo,
    labels: dict[str, str],
    catalog: VolumeCatalog | None = None,
) -> V1PodTemplateSpec:
    """Assemble the metal3 pod template.

    The containers are assembled first, then proxy settings and the trusted
    CA bundle are injected into both lists in a single pass.

    Args:
        info: Reconcile inputs.
        labels: Pod labels.
        catalog: Volume catalog; a fresh one is used when omitted.

    Returns:
        The pod template.
    """
    catalog = catalog or VolumeCatalog()
    proxy = info.facts.proxy
    init_containers = inject_proxy_and_ca(assemble_init_containers(info, catalog), proxy, catalog)
    containers = inject_proxy_and_ca(assemble_containers(info, catalog), proxy, catalog)

    return V1PodTemplateSpec(
        metadata=V1ObjectMeta(
            annotations={c.WORKLOAD_MANAGEMENT_ANNOTATION: c.WORKLOAD_MANAGEMENT_VALUE},
            labels=dict(labels),
        ),
        spec=V1PodSpec(
            volumes=catalog.volumes(),
            init_containers=init_containers,
            containers=containers,
            host_network=True,
            dns_policy="ClusterFirstWithHostNet",
            priority_class_name=c.PRIORITY_CLASS_NAME,
            node_selector={c.MASTER_NODE_ROLE: ""},
            # Privileged init steps run as root
            security_context=V1PodSecurityContext(run_as_non_root=False),
            service_account_name=c.SERVICE_ACCOUNT_NAME,
            tolerations=tolerations(),
        ),
    )


def owner_reference(owner: OwnerInfo) -> V1OwnerReference:
    """Controller reference so the Deployment is collected with its owner."""
    return V1OwnerReference(
        api_version=owner.api_version,
        kind=owner.kind,
        name=owner.name,
        uid=owner.uid,
        controller=True,
        block_owner_deletion=True,
    )


def new_metal3_deployment(info: ProvisioningInfo) -> V1Deployment:
    """Render the complete metal3 Deployment for one reconcile."""
    metadata = V1ObjectMeta(
        name=c.DEPLOYMENT_NAME,
        namespace=info.namespace,
        annotations={c.CBO_OWNED_ANNOTATION: ""},
        labels=workload_labels(),
    )
    if info.owner is not None:
        metadata.owner_references = [owner_reference(info.owner)]

    return V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=metadata,
        spec=V1DeploymentSpec(
            replicas=1,
            selector=workload_selector(),
            template=new_pod_template_spec(info, workload_labels()),
            strategy=V1DeploymentStrategy(type="Recreate"),
        ),
    )
