"""Fixtures for CLI command tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import structlog
import yaml

PROVISIONING_RESOURCE = {
    "apiVersion": "metal3.io/v1alpha1",
    "kind": "Provisioning",
    "metadata": {
        "name": "provisioning-configuration",
        "uid": "7f3c9a52-0000-4000-8000-000000000001",
    },
    "spec": {
        "provisioningNetwork": "Managed",
        "provisioningIP": "172.22.0.3",
        "provisioningNetworkCIDR": "172.22.0.0/24",
        "provisioningInterface": "enp1s0",
        "provisioningDHCPRange": "172.22.0.10,172.22.0.100",
        "provisioningOSDownloadURL": "http://mirror.example.com/rhcos.qcow2.gz?sha256=abc",
    },
}


@pytest.fixture(autouse=True)
def _no_logging_setup() -> Generator[MagicMock]:
    """Keep CLI invocations from installing log handlers.

    structlog prints to stdout by default; log output is dropped so that
    rendered manifests can be parsed from the captured output.
    """
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    with patch("metal3_provisioner.cli.main.configure_logging") as mock_configure:
        yield mock_configure
    structlog.reset_defaults()


@pytest.fixture
def provisioning_file(temp_dir: Path) -> Path:
    """A whole Provisioning resource as YAML."""
    path = temp_dir / "provisioning.yaml"
    path.write_text(yaml.safe_dump(PROVISIONING_RESOURCE))
    return path


@pytest.fixture
def spec_file(temp_dir: Path) -> Path:
    """A bare provisioning spec as YAML."""
    path = temp_dir / "spec.yaml"
    path.write_text(yaml.safe_dump({"provisioningNetwork": "Disabled"}))
    return path


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.default_namespace = "openshift-machine-api"
    client.__enter__.return_value = client
    return client


@pytest.fixture
def mock_reconciler() -> MagicMock:
    return MagicMock()


@pytest.fixture
def patched_reconciler(
    mock_client: MagicMock, mock_reconciler: MagicMock
) -> Generator[MagicMock]:
    """Make every command use the mocked client and reconciler."""
    with (
        patch(
            "metal3_provisioner.cli.commands.apply.get_reconciler",
            return_value=(mock_client, mock_reconciler),
        ) as mock_get,
        patch(
            "metal3_provisioner.cli.commands.status.get_reconciler",
            return_value=(mock_client, mock_reconciler),
        ),
        patch(
            "metal3_provisioner.cli.commands.delete.get_reconciler",
            return_value=(mock_client, mock_reconciler),
        ),
    ):
        yield mock_get
