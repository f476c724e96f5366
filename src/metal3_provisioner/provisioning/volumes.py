"""Volumes of the metal3 pod and the mounts containers select from them."""

from __future__ import annotations

import copy
from typing import Final

from kubernetes.client import (
    V1ConfigMapVolumeSource,
    V1EmptyDirVolumeSource,
    V1KeyToPath,
    V1SecretVolumeSource,
    V1Volume,
    V1VolumeMount,
)

from metal3_provisioner.provisioning import constants as c
from metal3_provisioner.provisioning.exceptions import ConstructionDefect


def _credentials_volume(name: str, secret_name: str) -> V1Volume:
    return V1Volume(
        name=name,
        secret=V1SecretVolumeSource(
            secret_name=secret_name,
            items=[V1KeyToPath(key=key, path=key) for key in c.CREDENTIAL_KEYS],
        ),
    )


def _build_volumes() -> list[V1Volume]:
    return [
        V1Volume(name=c.SHARED_VOLUME, empty_dir=V1EmptyDirVolumeSource()),
        V1Volume(name=c.IMAGE_CACHE_VOLUME, empty_dir=V1EmptyDirVolumeSource()),
        _credentials_volume(c.IRONIC_CREDENTIALS_VOLUME, c.IRONIC_SECRET_NAME),
        _credentials_volume(c.IRONIC_RPC_CREDENTIALS_VOLUME, c.IRONIC_RPC_SECRET_NAME),
        _credentials_volume(c.INSPECTOR_CREDENTIALS_VOLUME, c.INSPECTOR_SECRET_NAME),
        V1Volume(
            name=c.TRUSTED_CA_VOLUME,
            config_map=V1ConfigMapVolumeSource(
                name=c.TRUSTED_CA_CONFIG_MAP,
                items=[V1KeyToPath(key=c.TRUSTED_CA_KEY, path=c.TRUSTED_CA_PATH)],
                optional=True,
            ),
        ),
        V1Volume(
            name=c.IRONIC_TLS_VOLUME, secret=V1SecretVolumeSource(secret_name=c.TLS_SECRET_NAME)
        ),
        V1Volume(
            name=c.INSPECTOR_TLS_VOLUME, secret=V1SecretVolumeSource(secret_name=c.TLS_SECRET_NAME)
        ),
    ]


# volume name -> (mount path, read only)
_MOUNTS: Final[dict[str, tuple[str, bool]]] = {
    c.SHARED_VOLUME: (c.SHARED_MOUNT_PATH, False),
    c.IMAGE_CACHE_VOLUME: (c.IMAGE_CACHE_MOUNT_PATH, False),
    c.IRONIC_CREDENTIALS_VOLUME: (f"{c.AUTH_ROOT_DIR}/ironic", True),
    c.IRONIC_RPC_CREDENTIALS_VOLUME: (f"{c.AUTH_ROOT_DIR}/ironic-rpc", True),
    c.INSPECTOR_CREDENTIALS_VOLUME: (f"{c.AUTH_ROOT_DIR}/ironic-inspector", True),
    c.TRUSTED_CA_VOLUME: (c.TRUSTED_CA_MOUNT_PATH, True),
    c.IRONIC_TLS_VOLUME: (f"{c.TLS_ROOT_DIR}/ironic", True),
    c.INSPECTOR_TLS_VOLUME: (f"{c.TLS_ROOT_DIR}/ironic-inspector", True),
}


class VolumeCatalog:
    """The fixed, ordered set of volumes shared by the metal3 containers.

    Containers never build a ``V1VolumeMount`` themselves; they ask the
    catalog for one by volume name, so a mount of an undeclared volume
    fails while the pod is being rendered.

    Example:
        >>> catalog = VolumeCatalog()
        >>> catalog.mount("metal3-shared").mount_path
        '/shared'
    """

    def __init__(self) -> None:
        self._volumes = _build_volumes()
        self._names = [volume.name for volume in self._volumes]
        missing = set(self._names) ^ set(_MOUNTS)
        if missing:
            raise ConstructionDefect(f"Volumes and mounts disagree on {sorted(missing)}")

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def volumes(self) -> list[V1Volume]:
        """Fresh copies of every volume, in pod order."""
        return copy.deepcopy(self._volumes)

    def mount(self, name: str) -> V1VolumeMount:
        """The mount for volume *name*.

        Raises:
            ConstructionDefect: If no such volume is declared.
        """
        if name not in _MOUNTS:
            raise ConstructionDefect(f"Volume {name} is not declared in the pod volumes")
        mount_path, read_only = _MOUNTS[name]
        return V1VolumeMount(
            name=name,
            mount_path=mount_path,
            read_only=True if read_only else None,
        )

    def mounts(self, *names: str) -> list[V1VolumeMount]:
        return [self.mount(name) for name in names]
