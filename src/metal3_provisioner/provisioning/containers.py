"""Container definitions of the metal3 workload.

Which containers run is decided by two ordered rule tables, one for init
containers and one for long-running containers. Each rule pairs a predicate
over the reconcile inputs with the function that builds the container, so
membership depends on nothing but the provisioning config.

The assembled lists are raw: the proxy variables and the trusted CA mount are
added afterwards, once, by :func:`inject_proxy_and_ca`.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kubernetes.client import (
    V1Container,
    V1ContainerPort,
    V1EnvVar,
    V1ResourceRequirements,
    V1SecurityContext,
    V1VolumeMount,
)

from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.environment import (
    build_env_var,
    build_external_ip_env_var,
    build_htpasswd_env_var,
    build_secret_env_var,
    build_ssh_key_env_var,
    build_watch_namespace_env_var,
    compose_env,
    env_with_master_mac_addresses,
    env_with_proxy,
    field_ref_env_var,
    ip_options,
    literal_env_var,
)
from metal3_provisioner.provisioning.exceptions import ConstructionDefect
from metal3_provisioner.provisioning.models import NetworkMode
from metal3_provisioner.provisioning.volumes import VolumeCatalog

if TYPE_CHECKING:
    from metal3_provisioner.provisioning.models import ProvisioningInfo, ProxySettings

PULL_POLICY = "IfNotPresent"

MACHINE_OS_DOWNLOADER = "metal3-machine-os-downloader"
# Pod container names must be unique; used when the single-asset downloader
# also runs
LIVE_IMAGES_DOWNLOADER = "metal3-machine-os-downloader-live-images"

ContainerBuilder = Callable[["ProvisioningInfo", VolumeCatalog], V1Container]
Predicate = Callable[["ProvisioningInfo"], bool]


@dataclass(frozen=True)
class ContainerRule:
    """A container and the condition under which the pod includes it."""

    name: str
    applies: Predicate
    build: ContainerBuilder


def _container(
    name: str,
    image: str,
    command: str,
    *,
    cpu: str,
    memory: str,
    mounts: Sequence[V1VolumeMount] = (),
    env: Sequence[V1EnvVar] = (),
    ports: Sequence[V1ContainerPort] = (),
    args: Sequence[str] = (),
    privileged: bool = True,
) -> V1Container:
    return V1Container(
        name=name,
        image=image,
        command=[command],
        args=list(args) or None,
        image_pull_policy=PULL_POLICY,
        security_context=V1SecurityContext(privileged=True) if privileged else None,
        volume_mounts=list(mounts),
        env=list(env),
        ports=list(ports) or None,
        resources=V1ResourceRequirements(requests={"cpu": cpu, "memory": memory}),
    )


def _host_port(name: str, port: int) -> V1ContainerPort:
    # Host networking: the container port is the host port
    return V1ContainerPort(name=name, container_port=port, host_port=port)


def _mariadb_password() -> V1EnvVar:
    return build_secret_env_var(
        c.MARIADB_PASSWORD_ENV_VAR, c.MARIADB_SECRET_NAME, c.MARIADB_SECRET_KEY
    )


def _pull_secret() -> V1EnvVar:
    return build_secret_env_var(c.PULL_SECRET_ENV_VAR, c.PULL_SECRET_NAME, c.PULL_SECRET_KEY)


# =========================================================================
# Init containers
# =========================================================================


def build_static_ip_set(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _container(
        "metal3-static-ip-set",
        info.facts.images.static_ip_manager,
        "/set-static-ip",
        cpu="10m",
        memory="50Mi",
        env=compose_env(
            build_env_var(c.PROVISIONING_IP, info.config),
            build_env_var(c.PROVISIONING_INTERFACE, info.config),
        ),
    )


def _machine_os_downloader(
    info: ProvisioningInfo,
    catalog: VolumeCatalog,
    *,
    name: str,
    image_urls: str,
    use_live_images: bool,
) -> V1Container:
    if use_live_images:
        command = "/usr/local/bin/get-live-images.sh"
    else:
        command = "/usr/local/bin/get-resource.sh"
    return _container(
        name,
        info.facts.images.machine_os_downloader,
        command,
        cpu="10m",
        memory="50Mi",
        mounts=catalog.mounts(c.IMAGE_CACHE_VOLUME),
        env=compose_env(
            literal_env_var(c.MACHINE_IMAGE_URL, image_urls),
            literal_env_var(c.IP_OPTIONS, ip_options(info.facts.network_stack)),
        ),
    )


def build_live_os_downloader(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    """Downloads the CoreOS live ISO and/or PXE assets."""
    return _machine_os_downloader(
        info,
        catalog,
        name=LIVE_IMAGES_DOWNLOADER if _has_single_os_url(info) else MACHINE_OS_DOWNLOADER,
        image_urls=",".join(info.config.live_os_urls),
        use_live_images=True,
    )


def build_configure_coreos_ipa(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    """Embeds the ironic agent ignition into the downloaded live ISO."""
    env = compose_env(
        build_env_var(c.PROVISIONING_IP, info.config),
        build_env_var(c.PROVISIONING_INTERFACE, info.config),
        build_ssh_key_env_var(info.facts.ssh_key),
        _pull_secret(),
    )
    return _container(
        "metal3-configure-coreos-ipa",
        info.facts.images.ironic,
        "/bin/configure-coreos-ipa",
        cpu="10m",
        memory="50Mi",
        mounts=catalog.mounts(
            c.SHARED_VOLUME, c.IMAGE_CACHE_VOLUME, c.IRONIC_CREDENTIALS_VOLUME, c.IRONIC_TLS_VOLUME
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_single_os_downloader(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    """Downloads the single machine OS image named by the config."""
    return _machine_os_downloader(
        info,
        catalog,
        name=MACHINE_OS_DOWNLOADER,
        image_urls=info.config.provisioning_os_download_url or "",
        use_live_images=False,
    )


def build_ipa_downloader(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _container(
        "metal3-ipa-downloader",
        info.facts.images.ipa_downloader,
        "/usr/local/bin/get-resource.sh",
        cpu="10m",
        memory="50Mi",
        mounts=catalog.mounts(c.IMAGE_CACHE_VOLUME),
    )


def _has_static_ip(info: ProvisioningInfo) -> bool:
    return info.config.has_static_ip


def _has_live_urls(info: ProvisioningInfo) -> bool:
    return bool(info.config.live_os_urls)


def _has_only_live_urls(info: ProvisioningInfo) -> bool:
    return _has_live_urls(info) and not _has_single_os_url(info)


def _has_live_and_single_urls(info: ProvisioningInfo) -> bool:
    return _has_live_urls(info) and _has_single_os_url(info)


def _has_live_iso(info: ProvisioningInfo) -> bool:
    return _has_live_urls(info) and bool(info.config.pre_provisioning_os_download_urls.iso_url)


def _has_single_os_url(info: ProvisioningInfo) -> bool:
    return bool(info.config.provisioning_os_download_url)


def _needs_ipa_downloader(info: ProvisioningInfo) -> bool:
    return not info.config.coreos_ipa_available


INIT_CONTAINER_RULES: tuple[ContainerRule, ...] = (
    ContainerRule("metal3-static-ip-set", _has_static_ip, build_static_ip_set),
    ContainerRule(MACHINE_OS_DOWNLOADER, _has_only_live_urls, build_live_os_downloader),
    ContainerRule(LIVE_IMAGES_DOWNLOADER, _has_live_and_single_urls, build_live_os_downloader),
    ContainerRule("metal3-configure-coreos-ipa", _has_live_iso, build_configure_coreos_ipa),
    ContainerRule(MACHINE_OS_DOWNLOADER, _has_single_os_url, build_single_os_downloader),
    ContainerRule("metal3-ipa-downloader", _needs_ipa_downloader, build_ipa_downloader),
)


# =========================================================================
# Long-running containers
# =========================================================================


def build_baremetal_operator(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        build_watch_namespace_env_var(config),
        field_ref_env_var("POD_NAMESPACE", c.POD_NAMESPACE_FIELD),
        field_ref_env_var("POD_NAME", c.POD_NAME_FIELD),
        literal_env_var("OPERATOR_NAME", "baremetal-operator"),
        literal_env_var(c.IRONIC_CACERT_ENV_VAR, f"{c.TLS_ROOT_DIR}/ironic/{c.TLS_CERT_KEY}"),
        literal_env_var(c.IRONIC_INSECURE_ENV_VAR, "true"),
        build_env_var(c.DEPLOY_KERNEL_URL, config),
        build_env_var(c.DEPLOY_RAMDISK_URL, config),
        build_env_var(c.IRONIC_ENDPOINT, config),
        build_env_var(c.IRONIC_INSPECTOR_ENDPOINT, config),
        literal_env_var("METAL3_AUTH_ROOT_DIR", c.AUTH_ROOT_DIR),
    )
    return _container(
        "metal3-baremetal-operator",
        info.facts.images.baremetal_operator,
        "/baremetal-operator",
        cpu="20m",
        memory="50Mi",
        args=("--health-addr", c.OPERATOR_HEALTH_ADDR),
        privileged=False,
        ports=[_host_port("metrics", c.METRICS_PORT)],
        mounts=catalog.mounts(
            c.IRONIC_CREDENTIALS_VOLUME, c.INSPECTOR_CREDENTIALS_VOLUME, c.IRONIC_TLS_VOLUME
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_mariadb(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _container(
        "metal3-mariadb",
        info.facts.images.ironic,
        "/bin/runmariadb",
        cpu="15m",
        memory="80Mi",
        ports=[_host_port("mysql", c.MARIADB_PORT)],
        mounts=catalog.mounts(c.SHARED_VOLUME),
        env=env_with_master_mac_addresses(
            compose_env(_mariadb_password()), info.facts.master_mac_addresses
        ),
    )


def build_httpd(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        build_env_var(c.HTTP_PORT, config),
        build_env_var(c.PROVISIONING_IP, config),
        build_env_var(c.PROVISIONING_INTERFACE, config),
        build_ssh_key_env_var(info.facts.ssh_key),
    )
    return _container(
        "metal3-httpd",
        info.facts.images.ironic,
        "/bin/runhttpd",
        cpu="5m",
        memory="50Mi",
        ports=[_host_port(c.HTTP_PORT_NAME, config.http_port)],
        mounts=catalog.mounts(
            c.SHARED_VOLUME, c.IMAGE_CACHE_VOLUME, c.IRONIC_TLS_VOLUME, c.INSPECTOR_TLS_VOLUME
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_ironic_conductor(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        _mariadb_password(),
        literal_env_var(c.IRONIC_INSECURE_ENV_VAR, "true"),
        literal_env_var(c.INSPECTOR_INSECURE_ENV_VAR, "true"),
        build_env_var(c.HTTP_PORT, config),
        build_env_var(c.PROVISIONING_IP, config),
        build_env_var(c.PROVISIONING_INTERFACE, config),
        build_ssh_key_env_var(info.facts.ssh_key),
        build_htpasswd_env_var(c.HTPASSWD_ENV_VAR, c.IRONIC_RPC_SECRET_NAME),
        build_external_ip_env_var(c.EXTERNAL_IP_ENV_VAR, config),
    )
    return _container(
        "metal3-ironic-conductor",
        info.facts.images.ironic,
        "/bin/runironic-conductor",
        cpu="50m",
        memory="500Mi",
        ports=[_host_port("json-rpc", c.IRONIC_JSON_RPC_PORT)],
        mounts=catalog.mounts(
            c.SHARED_VOLUME,
            c.IMAGE_CACHE_VOLUME,
            c.INSPECTOR_CREDENTIALS_VOLUME,
            c.IRONIC_RPC_CREDENTIALS_VOLUME,
            c.IRONIC_TLS_VOLUME,
            c.INSPECTOR_TLS_VOLUME,
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def _ramdisk_logs(name: str, info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _container(
        name,
        info.facts.images.ironic,
        "/bin/runlogwatch.sh",
        cpu="10m",
        memory="5Mi",
        mounts=catalog.mounts(c.SHARED_VOLUME),
        env=env_with_master_mac_addresses([], info.facts.master_mac_addresses),
    )


def build_inspector_ramdisk_logs(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _ramdisk_logs("ironic-inspector-ramdisk-logs", info, catalog)


def build_deploy_ramdisk_logs(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    return _ramdisk_logs("ironic-deploy-ramdisk-logs", info, catalog)


def build_ironic_api(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        _mariadb_password(),
        literal_env_var(c.IRONIC_INSECURE_ENV_VAR, "true"),
        build_env_var(c.HTTP_PORT, config),
        build_env_var(c.PROVISIONING_IP, config),
        build_env_var(c.PROVISIONING_INTERFACE, config),
        build_htpasswd_env_var(c.HTPASSWD_ENV_VAR, c.IRONIC_SECRET_NAME),
        build_external_ip_env_var(c.EXTERNAL_IP_ENV_VAR, config),
    )
    return _container(
        "metal3-ironic-api",
        info.facts.images.ironic,
        "/bin/runironic-api",
        cpu="150m",
        memory="300Mi",
        ports=[_host_port("ironic", c.IRONIC_API_PORT)],
        mounts=catalog.mounts(
            c.SHARED_VOLUME, c.IRONIC_RPC_CREDENTIALS_VOLUME, c.IRONIC_TLS_VOLUME
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_ironic_inspector(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        literal_env_var(c.IRONIC_INSECURE_ENV_VAR, "true"),
        build_env_var(c.PROVISIONING_IP, config),
        build_env_var(c.PROVISIONING_INTERFACE, config),
        build_htpasswd_env_var(c.HTPASSWD_ENV_VAR, c.INSPECTOR_SECRET_NAME),
    )
    return _container(
        "metal3-ironic-inspector",
        info.facts.images.ironic,
        "/bin/runironic-inspector",
        cpu="40m",
        memory="100Mi",
        ports=[_host_port("inspector", c.INSPECTOR_PORT)],
        mounts=catalog.mounts(
            c.SHARED_VOLUME,
            c.IRONIC_CREDENTIALS_VOLUME,
            c.IRONIC_TLS_VOLUME,
            c.INSPECTOR_TLS_VOLUME,
        ),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_static_ip_manager(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    env = compose_env(
        build_env_var(c.PROVISIONING_IP, info.config),
        build_env_var(c.PROVISIONING_INTERFACE, info.config),
    )
    return _container(
        "metal3-static-ip-manager",
        info.facts.images.static_ip_manager,
        "/refresh-static-ip",
        cpu="5m",
        memory="50Mi",
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def build_dnsmasq(info: ProvisioningInfo, catalog: VolumeCatalog) -> V1Container:
    config = info.config
    env = compose_env(
        build_env_var(c.HTTP_PORT, config),
        build_env_var(c.PROVISIONING_INTERFACE, config),
        build_env_var(c.DHCP_RANGE, config),
    )
    return _container(
        "metal3-dnsmasq",
        info.facts.images.ironic,
        "/bin/rundnsmasq",
        cpu="5m",
        memory="5Mi",
        mounts=catalog.mounts(c.SHARED_VOLUME, c.IMAGE_CACHE_VOLUME),
        env=env_with_master_mac_addresses(env, info.facts.master_mac_addresses),
    )


def _always(info: ProvisioningInfo) -> bool:
    return True


def _has_provisioning_network(info: ProvisioningInfo) -> bool:
    return info.config.provisioning_network != NetworkMode.DISABLED


CONTAINER_RULES: tuple[ContainerRule, ...] = (
    ContainerRule("metal3-baremetal-operator", _always, build_baremetal_operator),
    ContainerRule("metal3-mariadb", _always, build_mariadb),
    ContainerRule("metal3-httpd", _always, build_httpd),
    ContainerRule("metal3-ironic-conductor", _always, build_ironic_conductor),
    ContainerRule("ironic-inspector-ramdisk-logs", _always, build_inspector_ramdisk_logs),
    ContainerRule("metal3-ironic-api", _always, build_ironic_api),
    ContainerRule("ironic-deploy-ramdisk-logs", _always, build_deploy_ramdisk_logs),
    ContainerRule("metal3-ironic-inspector", _always, build_ironic_inspector),
    ContainerRule("metal3-static-ip-manager", _has_static_ip, build_static_ip_manager),
    ContainerRule("metal3-dnsmasq", _has_provisioning_network, build_dnsmasq),
)


# =========================================================================
# Assembly
# =========================================================================


def _assemble(
    rules: Sequence[ContainerRule],
    info: ProvisioningInfo,
    catalog: VolumeCatalog,
) -> list[V1Container]:
    containers = []
    for rule in rules:
        if not rule.applies(info):
            continue
        container = rule.build(info, catalog)
        if container.name != rule.name:
            raise ConstructionDefect(f"Rule {rule.name} built container {container.name}")
        containers.append(container)
    return containers


def assemble_init_containers(
    info: ProvisioningInfo, catalog: VolumeCatalog | None = None
) -> list[V1Container]:
    """Init containers, in run order, before proxy and CA injection."""
    return _assemble(INIT_CONTAINER_RULES, info, catalog or VolumeCatalog())


def assemble_containers(
    info: ProvisioningInfo, catalog: VolumeCatalog | None = None
) -> list[V1Container]:
    """Long-running containers, before proxy and CA injection."""
    return _assemble(CONTAINER_RULES, info, catalog or VolumeCatalog())


def inject_proxy_and_ca(
    containers: Sequence[V1Container],
    proxy: ProxySettings | None,
    catalog: VolumeCatalog | None = None,
) -> list[V1Container]:
    """Give every container the cluster proxy settings and the trusted CA bundle.

    Returns new containers; the input list is left untouched. Running this on
    its own output changes nothing.
    """
    ca_mount = (catalog or VolumeCatalog()).mount(c.TRUSTED_CA_VOLUME)
    injected = []
    for container in containers:
        container = copy.deepcopy(container)
        container.env = env_with_proxy(container.env or [], proxy)
        mounts = list(container.volume_mounts or [])
        if not any(mount.name == ca_mount.name for mount in mounts):
            mounts.append(copy.deepcopy(ca_mount))
        container.volume_mounts = mounts
        injected.append(container)
    return injected
