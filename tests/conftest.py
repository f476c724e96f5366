"""Shared pytest fixtures for metal3_provisioner tests."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import typer
from typer.testing import CliRunner

from metal3_provisioner.cli.main import app
from metal3_provisioner.provisioning.models import (
    ContainerImages,
    ExternalFacts,
    NetworkMode,
    ProvisioningConfig,
    ProvisioningInfo,
)

IMAGES_JSON = {
    "baremetalOperator": "quay.io/metal3/baremetal-operator:test",
    "baremetalIronic": "quay.io/metal3/ironic:test",
    "baremetalIpaDownloader": "quay.io/metal3/ipa-downloader:test",
    "baremetalMachineOsDownloader": "quay.io/metal3/machine-os-downloader:test",
    "baremetalStaticIpManager": "quay.io/metal3/static-ip-manager:test",
}

MASTER_MACS = ("52:54:00:00:00:01", "52:54:00:00:00:02", "52:54:00:00:00:03")


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("METAL3_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Fixture to capture log output."""
    import logging

    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


# =============================================================================
# Provisioning inputs
# =============================================================================


@pytest.fixture
def images_json() -> dict[str, str]:
    """Contents of the operator's images.json."""
    return dict(IMAGES_JSON)


@pytest.fixture
def master_macs() -> tuple[str, ...]:
    """MAC addresses of the control-plane hosts."""
    return MASTER_MACS


@pytest.fixture
def images() -> ContainerImages:
    """Container image references."""
    return ContainerImages.model_validate(IMAGES_JSON)


@pytest.fixture
def images_file(temp_dir: Path) -> Path:
    """An images.json file."""
    path = temp_dir / "images.json"
    path.write_text(json.dumps(IMAGES_JSON))
    return path


@pytest.fixture
def facts(images: ContainerImages) -> ExternalFacts:
    """External facts with three control-plane hosts and no proxy."""
    return ExternalFacts(
        images=images,
        master_mac_addresses=MASTER_MACS,
        ssh_key="ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAITest core@example",
    )


@pytest.fixture
def managed_config() -> ProvisioningConfig:
    """A Managed provisioning network with a static provisioning IP."""
    return ProvisioningConfig(
        provisioning_network=NetworkMode.MANAGED,
        provisioning_ip="172.22.0.3",
        provisioning_network_cidr="172.22.0.0/24",
        provisioning_interface="enp1s0",
        provisioning_dhcp_range="172.22.0.10,172.22.0.100",
        provisioning_os_download_url="http://mirror.example.com/rhcos.qcow2.gz?sha256=abc",
    )


@pytest.fixture
def disabled_config() -> ProvisioningConfig:
    """No provisioning network, no static IP and no OS downloads."""
    return ProvisioningConfig(provisioning_network=NetworkMode.DISABLED)


@pytest.fixture
def make_info(facts: ExternalFacts) -> Callable[..., ProvisioningInfo]:
    """Factory for ProvisioningInfo built from config fields."""

    def _make(
        config: ProvisioningConfig | None = None,
        namespace: str = "openshift-machine-api",
        **config_fields: Any,
    ) -> ProvisioningInfo:
        if config is None:
            config = ProvisioningConfig(**config_fields)
        return ProvisioningInfo(config=config, facts=facts, namespace=namespace)

    return _make
