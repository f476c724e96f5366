"""Data model for rendering the metal3 workload.

``ProvisioningConfig`` mirrors the ``spec`` of the Provisioning custom
resource and accepts its camelCase field names. ``ExternalFacts`` carries the
per-reconcile inputs that do not come from that resource. Both are frozen:
the renderer never mutates what the caller hands it.
"""

from __future__ import annotations

import ipaddress
import json
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from metal3_provisioner.provisioning.constants import DEFAULT_HTTP_PORT


class NetworkMode(StrEnum):
    """Provisioning network mode: who owns DHCP on the provisioning network."""

    MANAGED = "Managed"
    UNMANAGED = "Unmanaged"
    DISABLED = "Disabled"


class NetworkStack(StrEnum):
    """IP stack detected on the cluster's machine network."""

    V4 = "v4"
    V6 = "v6"
    DUAL = "dual"


class RolloutState(StrEnum):
    """Rollout state of the metal3 Deployment.

    Values match the Deployment condition types reported by the API server.
    """

    PROGRESSING = "Progressing"
    AVAILABLE = "Available"
    REPLICA_FAILURE = "ReplicaFailure"
    UNKNOWN = "Unknown"


class _SpecModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )


class PreProvisioningOSDownloadURLs(_SpecModel):
    """Live OS images used to boot the ironic agent."""

    iso_url: str | None = Field(default=None, alias="isoURL")
    kernel_url: str | None = Field(default=None, alias="kernelURL")
    initramfs_url: str | None = Field(default=None, alias="initramfsURL")
    rootfs_url: str | None = Field(default=None, alias="rootfsURL")

    @field_validator("*", mode="before")
    @classmethod
    def empty_as_unset(cls, v: Any) -> Any:
        """Treat empty strings as unset, as the custom resource does."""
        return v or None

    def live_urls(self) -> list[str]:
        """Configured URLs in download order: ISO, kernel, initramfs, rootfs."""
        urls = (self.iso_url, self.kernel_url, self.initramfs_url, self.rootfs_url)
        return [url for url in urls if url]


class ProvisioningConfig(_SpecModel):
    """Provisioning configuration snapshot for one reconcile."""

    provisioning_network: NetworkMode = NetworkMode.MANAGED
    provisioning_ip: str | None = Field(default=None, alias="provisioningIP")
    provisioning_network_cidr: str | None = Field(default=None, alias="provisioningNetworkCIDR")
    provisioning_interface: str | None = None
    provisioning_dhcp_range: str | None = Field(default=None, alias="provisioningDHCPRange")
    http_port: int = DEFAULT_HTTP_PORT
    deploy_kernel_url: str | None = None
    deploy_ramdisk_url: str | None = None
    provisioning_os_download_url: str | None = Field(
        default=None, alias="provisioningOSDownloadURL"
    )
    pre_provisioning_os_download_urls: PreProvisioningOSDownloadURLs = Field(
        default_factory=PreProvisioningOSDownloadURLs,
        alias="preProvisioningOSDownloadURLs",
    )
    virtual_media_via_external_network: bool = False
    watch_all_namespaces: bool = False

    @field_validator(
        "provisioning_ip",
        "provisioning_network_cidr",
        "provisioning_interface",
        "provisioning_dhcp_range",
        "deploy_kernel_url",
        "deploy_ramdisk_url",
        "provisioning_os_download_url",
        mode="before",
    )
    @classmethod
    def empty_as_unset(cls, v: Any) -> Any:
        """Treat empty strings as unset, as the custom resource does."""
        return v or None

    @field_validator("provisioning_ip")
    @classmethod
    def validate_ip(cls, v: str | None) -> str | None:
        """Validate the provisioning IP is an IP address."""
        if v is not None:
            ipaddress.ip_address(v)
        return v

    @field_validator("provisioning_network_cidr")
    @classmethod
    def validate_cidr(cls, v: str | None) -> str | None:
        """Validate the provisioning network is a CIDR."""
        if v is not None:
            ipaddress.ip_network(v, strict=False)
        return v

    @field_validator("provisioning_dhcp_range")
    @classmethod
    def validate_dhcp_range(cls, v: str | None) -> str | None:
        """Validate the DHCP range is two comma-separated addresses."""
        if v is None:
            return v
        parts = [part.strip() for part in v.split(",")]
        if len(parts) != 2:
            raise ValueError("provisioningDHCPRange must be '<start>,<end>'")
        for part in parts:
            ipaddress.ip_address(part)
        return ",".join(parts)

    @field_validator("http_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate the HTTP port is a TCP port number."""
        if not 0 < v < 65536:
            raise ValueError("httpPort must be between 1 and 65535")
        return v

    @model_validator(mode="after")
    def check_network_settings(self) -> ProvisioningConfig:
        """Cross-field checks for the provisioning network."""
        if self.provisioning_ip and self.provisioning_network_cidr:
            network = ipaddress.ip_network(self.provisioning_network_cidr, strict=False)
            if ipaddress.ip_address(self.provisioning_ip) not in network:
                raise ValueError(
                    f"provisioningIP {self.provisioning_ip} is not in "
                    f"provisioningNetworkCIDR {self.provisioning_network_cidr}"
                )
        if self.provisioning_network == NetworkMode.MANAGED and not self.provisioning_dhcp_range:
            raise ValueError("provisioningDHCPRange is required when the network is Managed")
        return self

    @property
    def prefix_length(self) -> int | None:
        """Prefix length of the provisioning network, if one is configured."""
        if not self.provisioning_network_cidr:
            return None
        return ipaddress.ip_network(self.provisioning_network_cidr, strict=False).prefixlen

    @property
    def has_static_ip(self) -> bool:
        """Whether a static provisioning IP must be set and kept on the host.

        With the network disabled and no IP requested on the machine network
        there is nothing for the static IP containers to manage.
        """
        return bool(self.provisioning_ip) and self.provisioning_network != NetworkMode.DISABLED

    @property
    def live_os_urls(self) -> list[str]:
        """Live OS download URLs, in download order."""
        return self.pre_provisioning_os_download_urls.live_urls()

    @property
    def coreos_ipa_available(self) -> bool:
        """Whether the CoreOS live assets already provide the ironic agent.

        The agent can be booted from the CoreOS kernel, initramfs and rootfs
        when all three are downloaded; otherwise the IPA images are needed.
        """
        urls = self.pre_provisioning_os_download_urls
        return bool(urls.kernel_url and urls.initramfs_url and urls.rootfs_url)

    @property
    def resolved_deploy_kernel_url(self) -> str:
        return (
            self.deploy_kernel_url
            or f"http://localhost:{self.http_port}/images/ironic-python-agent.kernel"
        )

    @property
    def resolved_deploy_ramdisk_url(self) -> str:
        return (
            self.deploy_ramdisk_url
            or f"http://localhost:{self.http_port}/images/ironic-python-agent.initramfs"
        )


class ContainerImages(_SpecModel):
    """Image references for every container of the workload."""

    baremetal_operator: str = Field(alias="baremetalOperator")
    ironic: str = Field(alias="baremetalIronic")
    ipa_downloader: str = Field(alias="baremetalIpaDownloader")
    machine_os_downloader: str = Field(alias="baremetalMachineOsDownloader")
    static_ip_manager: str = Field(alias="baremetalStaticIpManager")

    @classmethod
    def from_file(cls, path: Path) -> ContainerImages:
        """Load image references from the operator's ``images.json``.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file is not valid JSON or misses an image.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse images file {path}: {e}") from e
        return cls.model_validate(data)


class ProxySettings(_SpecModel):
    """Cluster-wide egress proxy, as observed in the cluster Proxy status."""

    http_proxy: str | None = Field(default=None, alias="httpProxy")
    https_proxy: str | None = Field(default=None, alias="httpsProxy")
    no_proxy: str | None = None


class ExternalFacts(_SpecModel):
    """Per-reconcile inputs gathered outside the Provisioning resource."""

    images: ContainerImages
    master_mac_addresses: tuple[str, ...] = ()
    ssh_key: str = ""
    network_stack: NetworkStack = NetworkStack.V4
    proxy: ProxySettings | None = None


class OwnerInfo(_SpecModel):
    """The Provisioning resource that owns the Deployment."""

    api_version: str = "metal3.io/v1alpha1"
    kind: str = "Provisioning"
    name: str
    uid: str


class GenerationStatus(BaseModel):
    """Last generation written for a resource; used to detect no-op updates."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    group: str
    resource: str
    namespace: str
    name: str
    last_generation: int


@dataclass
class ProvisioningInfo:
    """Everything one reconcile of the metal3 workload needs.

    ``generations`` is owned by the caller (it lives in the Provisioning
    resource status) and is updated in place after a successful write.
    """

    config: ProvisioningConfig
    facts: ExternalFacts
    namespace: str
    owner: OwnerInfo | None = None
    generations: list[GenerationStatus] = field(default_factory=list)


def load_provisioning_file(path: Path) -> tuple[ProvisioningConfig, OwnerInfo | None]:
    """Load a provisioning configuration from a YAML file.

    Accepts either a bare spec mapping or a whole Provisioning resource, in
    which case its metadata also yields the owner reference.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file cannot be parsed or validated.
    """
    import yaml

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse provisioning file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Provisioning file {path} must contain a mapping")

    if data.get("kind") != "Provisioning":
        return ProvisioningConfig.model_validate(data), None

    metadata = data.get("metadata") or {}
    owner = None
    if metadata.get("uid"):
        owner = OwnerInfo(
            api_version=data.get("apiVersion", "metal3.io/v1alpha1"),
            kind="Provisioning",
            name=metadata.get("name", ""),
            uid=metadata["uid"],
        )
    return ProvisioningConfig.model_validate(data.get("spec") or {}), owner
