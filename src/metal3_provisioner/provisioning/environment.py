"""Environment variables for the metal3 containers.

A variable resolves to one of three shapes:

* a literal value taken from the provisioning config,
* a downward API reference (e.g. the host IP, for host-networked pods),
* a name-only placeholder, which keeps the variable visible in the pod spec
  while telling the image the setting does not apply.

Credentials are only ever referenced through ``secretKeyRef``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from kubernetes.client import (
    V1EnvVar,
    V1EnvVarSource,
    V1ObjectFieldSelector,
    V1SecretKeySelector,
)

from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.exceptions import ConstructionDefect
from metal3_provisioner.provisioning.models import NetworkMode, NetworkStack

if TYPE_CHECKING:
    from metal3_provisioner.provisioning.models import ProvisioningConfig, ProxySettings


def config_value(name: str, config: ProvisioningConfig) -> str | None:
    """Literal value the config supplies for *name*, or None if it supplies none."""
    if name == c.PROVISIONING_IP:
        if not config.provisioning_ip:
            return None
        prefix = config.prefix_length
        if prefix is None:
            return config.provisioning_ip
        return f"{config.provisioning_ip}/{prefix}"
    if name == c.PROVISIONING_INTERFACE:
        return config.provisioning_interface
    if name == c.DHCP_RANGE:
        # dnsmasq only hands out leases when this workload owns the network
        if config.provisioning_network != NetworkMode.MANAGED or not config.provisioning_dhcp_range:
            return None
        prefix = config.prefix_length
        if prefix is None:
            return config.provisioning_dhcp_range
        return f"{config.provisioning_dhcp_range},{prefix}"
    if name == c.HTTP_PORT:
        return str(config.http_port)
    if name == c.DEPLOY_KERNEL_URL:
        return config.resolved_deploy_kernel_url
    if name == c.DEPLOY_RAMDISK_URL:
        return config.resolved_deploy_ramdisk_url
    if name == c.IRONIC_ENDPOINT:
        return c.IRONIC_ENDPOINT_URL
    if name == c.IRONIC_INSPECTOR_ENDPOINT:
        return c.INSPECTOR_ENDPOINT_URL
    raise ConstructionDefect(f"No config mapping for environment variable {name}")


def literal_env_var(name: str, value: str) -> V1EnvVar:
    return V1EnvVar(name=name, value=value)


def field_ref_env_var(name: str, field_path: str) -> V1EnvVar:
    return V1EnvVar(
        name=name,
        value_from=V1EnvVarSource(field_ref=V1ObjectFieldSelector(field_path=field_path)),
    )


def build_env_var(name: str, config: ProvisioningConfig) -> V1EnvVar:
    """Resolve a config-driven variable.

    Without a configured provisioning IP on a disabled provisioning network,
    ``PROVISIONING_IP`` falls back to the IP of the host the pod runs on.
    """
    value = config_value(name, config)
    if value is not None:
        return literal_env_var(name, value)
    if name == c.PROVISIONING_IP and config.provisioning_network == NetworkMode.DISABLED:
        return field_ref_env_var(name, c.HOST_IP_FIELD)
    return V1EnvVar(name=name)


def build_ssh_key_env_var(ssh_key: str) -> V1EnvVar:
    """The ramdisk SSH public key. Public keys are passed as literals."""
    return literal_env_var(c.SSH_KEY_ENV_VAR, ssh_key)


def build_secret_env_var(name: str, secret_name: str, key: str) -> V1EnvVar:
    """Reference a key of a named secret.

    Raises:
        ConstructionDefect: If the secret name or key is empty.
    """
    if not secret_name or not key:
        raise ConstructionDefect(f"Secret reference for {name} needs a secret name and key")
    return V1EnvVar(
        name=name,
        value_from=V1EnvVarSource(secret_key_ref=V1SecretKeySelector(name=secret_name, key=key)),
    )


def build_htpasswd_env_var(name: str, secret_name: str) -> V1EnvVar:
    """The htpasswd hash of a service's credentials secret."""
    return build_secret_env_var(name, secret_name, c.IRONIC_HTPASSWD_KEY)


def build_external_ip_env_var(name: str, config: ProvisioningConfig) -> V1EnvVar:
    """The externally reachable IP used for virtual media.

    Only set (to the host IP) when a provisioning network exists and virtual
    media was requested over the external network.
    """
    if (
        config.provisioning_network != NetworkMode.DISABLED
        and config.virtual_media_via_external_network
    ):
        return field_ref_env_var(name, c.HOST_IP_FIELD)
    return V1EnvVar(name=name)


def build_watch_namespace_env_var(config: ProvisioningConfig) -> V1EnvVar:
    """Namespaces the baremetal-operator watches: all, or only its own."""
    if config.watch_all_namespaces:
        return literal_env_var(c.WATCH_NAMESPACE_ENV_VAR, "")
    return field_ref_env_var(c.WATCH_NAMESPACE_ENV_VAR, c.POD_NAMESPACE_FIELD)


def ip_options(stack: NetworkStack) -> str:
    """Kernel ``ip=`` argument for the live images on the detected stack."""
    if stack == NetworkStack.V4:
        return "ip=dhcp"
    if stack == NetworkStack.V6:
        return "ip=dhcp6"
    return ""


def compose_env(*env_vars: V1EnvVar) -> list[V1EnvVar]:
    """Build an environment list, enforcing unique names."""
    return append_env([], env_vars)


def append_env(env: Sequence[V1EnvVar], extra: Iterable[V1EnvVar]) -> list[V1EnvVar]:
    """Return *env* followed by *extra*.

    Raises:
        ConstructionDefect: If a name would appear twice.
    """
    result = list(env)
    seen = {var.name for var in result}
    for var in extra:
        if var.name in seen:
            raise ConstructionDefect(f"Duplicate environment variable {var.name}")
        seen.add(var.name)
        result.append(var)
    return result


def env_with_master_mac_addresses(env: Sequence[V1EnvVar], macs: Sequence[str]) -> list[V1EnvVar]:
    """Append the control-plane MAC addresses as the last entry."""
    return append_env(env, [literal_env_var(c.PROVISIONING_MACS, ",".join(macs))])


def env_with_proxy(env: Sequence[V1EnvVar], proxy: ProxySettings | None) -> list[V1EnvVar]:
    """Set the proxy variables that have a value.

    Existing proxy variables are replaced in place, so applying this twice
    yields the same list.
    """
    if proxy is None:
        return list(env)

    wanted = {
        c.HTTP_PROXY_ENV_VAR: proxy.http_proxy,
        c.HTTPS_PROXY_ENV_VAR: proxy.https_proxy,
        c.NO_PROXY_ENV_VAR: proxy.no_proxy,
    }
    result = list(env)
    for name, value in wanted.items():
        if not value:
            continue
        var = literal_env_var(name, value)
        for index, existing in enumerate(result):
            if existing.name == name:
                result[index] = var
                break
        else:
            result.append(var)
    return result
