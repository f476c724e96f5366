"""Unit tests for the pod volume catalog."""

from __future__ import annotations

import pytest

from metal3_provisioner.provisioning.exceptions import ConstructionDefect
from metal3_provisioner.provisioning.volumes import VolumeCatalog


@pytest.mark.unit
class TestVolumeCatalog:
    """Tests for VolumeCatalog."""

    def test_volume_order(self) -> None:
        """Volumes are declared in a fixed order."""
        assert VolumeCatalog().names == [
            "metal3-shared",
            "metal3-cache",
            "metal3-ironic-basic-auth",
            "metal3-ironic-rpc-basic-auth",
            "metal3-inspector-basic-auth",
            "trusted-ca",
            "metal3-ironic-tls",
            "metal3-inspector-tls",
        ]

    def test_shared_volumes_are_empty_dirs(self) -> None:
        """The shared and cache volumes live with the pod."""
        volumes = {volume.name: volume for volume in VolumeCatalog().volumes()}

        assert volumes["metal3-shared"].empty_dir is not None
        assert volumes["metal3-cache"].empty_dir is not None

    def test_credentials_volume_items(self) -> None:
        """Credential secrets project username, password and auth-config."""
        volumes = {volume.name: volume for volume in VolumeCatalog().volumes()}
        secret = volumes["metal3-ironic-rpc-basic-auth"].secret

        assert secret.secret_name == "metal3-ironic-rpc-password"
        assert [item.key for item in secret.items] == ["username", "password", "auth-config"]
        assert [item.path for item in secret.items] == ["username", "password", "auth-config"]

    def test_trusted_ca_is_optional_config_map(self) -> None:
        """The CA bundle comes from an optional config map."""
        volumes = {volume.name: volume for volume in VolumeCatalog().volumes()}
        config_map = volumes["trusted-ca"].config_map

        assert config_map.name == "cbo-trusted-ca"
        assert config_map.optional is True
        assert config_map.items[0].key == "ca-bundle.crt"
        assert config_map.items[0].path == "tls-ca-bundle.pem"

    def test_tls_volumes_share_secret(self) -> None:
        """Both TLS volumes mount the ironic TLS secret."""
        volumes = {volume.name: volume for volume in VolumeCatalog().volumes()}

        assert volumes["metal3-ironic-tls"].secret.secret_name == "metal3-ironic-tls"
        assert volumes["metal3-inspector-tls"].secret.secret_name == "metal3-ironic-tls"

    def test_volumes_returns_copies(self) -> None:
        """Callers cannot modify the catalog through returned volumes."""
        catalog = VolumeCatalog()
        catalog.volumes()[0].name = "changed"

        assert catalog.volumes()[0].name == "metal3-shared"

    @pytest.mark.parametrize(
        ("name", "path", "read_only"),
        [
            ("metal3-shared", "/shared", None),
            ("metal3-cache", "/shared/html/images", None),
            ("metal3-ironic-basic-auth", "/auth/ironic", True),
            ("metal3-ironic-rpc-basic-auth", "/auth/ironic-rpc", True),
            ("metal3-inspector-basic-auth", "/auth/ironic-inspector", True),
            ("trusted-ca", "/etc/pki/ca-trust/extracted/pem", True),
            ("metal3-ironic-tls", "/certs/ironic", True),
            ("metal3-inspector-tls", "/certs/ironic-inspector", True),
        ],
    )
    def test_mount(self, name: str, path: str, read_only: bool | None) -> None:
        """Each declared volume has a fixed mount point."""
        mount = VolumeCatalog().mount(name)

        assert mount.name == name
        assert mount.mount_path == path
        assert mount.read_only is read_only

    def test_mount_unknown_volume(self) -> None:
        """Mounting an undeclared volume is a programming error."""
        with pytest.raises(ConstructionDefect, match="not declared"):
            VolumeCatalog().mount("metal3-missing")

    def test_mounts_keeps_order(self) -> None:
        """mounts() returns one mount per name, in order."""
        mounts = VolumeCatalog().mounts("metal3-cache", "metal3-shared")

        assert [mount.name for mount in mounts] == ["metal3-cache", "metal3-shared"]
