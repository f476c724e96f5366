"""Rendering of the metal3 workload: config model, containers, pod and Deployment."""

from metal3_provisioner.provisioning.containers import (
    assemble_containers,
    assemble_init_containers,
    inject_proxy_and_ca,
)
from metal3_provisioner.provisioning.exceptions import (
    ConstructionDefect,
    DeploymentApplyError,
    DeploymentDeleteError,
    DeploymentLookupError,
    ProvisioningError,
    SelectorConflictError,
)
from metal3_provisioner.provisioning.models import (
    ContainerImages,
    ExternalFacts,
    GenerationStatus,
    NetworkMode,
    NetworkStack,
    OwnerInfo,
    PreProvisioningOSDownloadURLs,
    ProvisioningConfig,
    ProvisioningInfo,
    ProxySettings,
    RolloutState,
    load_provisioning_file,
)
from metal3_provisioner.provisioning.pod_template import (
    new_metal3_deployment,
    new_pod_template_spec,
)
from metal3_provisioner.provisioning.volumes import VolumeCatalog

__all__ = [
    "ConstructionDefect",
    "ContainerImages",
    "DeploymentApplyError",
    "DeploymentDeleteError",
    "DeploymentLookupError",
    "ExternalFacts",
    "GenerationStatus",
    "NetworkMode",
    "NetworkStack",
    "OwnerInfo",
    "PreProvisioningOSDownloadURLs",
    "ProvisioningConfig",
    "ProvisioningError",
    "ProvisioningInfo",
    "ProxySettings",
    "RolloutState",
    "SelectorConflictError",
    "VolumeCatalog",
    "assemble_containers",
    "assemble_init_containers",
    "inject_proxy_and_ca",
    "load_provisioning_file",
    "new_metal3_deployment",
    "new_pod_template_spec",
]
