"""Tests for the status command."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import yaml
from kubernetes.client import (
    V1Deployment,
    V1DeploymentSpec,
    V1DeploymentStatus,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodTemplateSpec,
)
from typer.testing import CliRunner

from metal3_provisioner.cli.main import app
from metal3_provisioner.integrations.kubernetes.exceptions import KubernetesAuthError
from metal3_provisioner.provisioning.exceptions import DeploymentLookupError
from metal3_provisioner.provisioning.models import RolloutState


@pytest.mark.unit
class TestStatusCommand:
    """Test status command."""

    def test_status_available(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
    ) -> None:
        mock_reconciler.get_deployment_state.return_value = RolloutState.AVAILABLE

        result = cli_runner.invoke(app, ["status"])

        assert result.exit_code == 0, result.output
        assert "Metal3 Deployment" in result.stdout
        assert "Available" in result.stdout
        mock_reconciler.get_deployment_state.assert_called_once_with("openshift-machine-api")

    def test_status_namespace_option(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
    ) -> None:
        mock_reconciler.get_deployment_state.return_value = RolloutState.PROGRESSING

        result = cli_runner.invoke(app, ["status", "-n", "metal3-system"])

        assert result.exit_code == 0, result.output
        mock_reconciler.get_deployment_state.assert_called_once_with("metal3-system")

    def test_status_replica_failure(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
    ) -> None:
        """A failed rollout exits with code 2."""
        mock_reconciler.get_deployment_state.return_value = RolloutState.REPLICA_FAILURE

        result = cli_runner.invoke(app, ["status"])

        assert result.exit_code == 2
        assert "ReplicaFailure" in result.stdout

    def test_status_lookup_failure(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        mock_client: MagicMock,
    ) -> None:
        """An unreadable Deployment reports ReplicaFailure and skips the manifest."""
        mock_reconciler.get_deployment_state.side_effect = DeploymentLookupError(
            "Unable to read Metal3 deployment", RuntimeError("not found")
        )

        result = cli_runner.invoke(app, ["status", "--manifest"])

        assert result.exit_code == 2
        assert "Cannot read Deployment" in result.stdout
        mock_client.get_deployment.assert_not_called()

    def test_status_manifest(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        mock_client: MagicMock,
    ) -> None:
        """The stored object is printed without server-managed fields."""
        mock_reconciler.get_deployment_state.return_value = RolloutState.AVAILABLE
        mock_client.get_deployment.return_value = V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=V1ObjectMeta(name="metal3", resource_version="12", uid="abc"),
            spec=V1DeploymentSpec(
                replicas=1,
                selector=V1LabelSelector(match_labels={"k8s-app": "metal3"}),
                template=V1PodTemplateSpec(),
            ),
            status=V1DeploymentStatus(replicas=1),
        )

        result = cli_runner.invoke(app, ["status", "--manifest"])

        assert result.exit_code == 0, result.output
        assert "apiVersion: apps/v1" in result.stdout
        assert "resourceVersion" not in result.stdout
        manifest_start = result.stdout.index("apiVersion:")
        document = yaml.safe_load(result.stdout[manifest_start:])
        assert document["metadata"] == {"name": "metal3"}

    def test_status_auth_error(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
    ) -> None:
        mock_reconciler.get_deployment_state.side_effect = KubernetesAuthError()

        result = cli_runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Authentication/authorization failed" in result.output
