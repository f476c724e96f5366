"""Tests for the apply command and rollout waiting."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from metal3_provisioner.cli.commands.apply import wait_for_rollout
from metal3_provisioner.cli.main import app
from metal3_provisioner.integrations.kubernetes.config import RolloutWaitConfig
from metal3_provisioner.integrations.kubernetes.exceptions import (
    KubernetesConnectionError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)
from metal3_provisioner.provisioning.exceptions import (
    DeploymentDeleteError,
    SelectorConflictError,
)
from metal3_provisioner.provisioning.models import RolloutState


def _args(provisioning_file: Path, images_file: Path, *extra: str) -> list[str]:
    return ["apply", "-c", str(provisioning_file), "-i", str(images_file), *extra]


@pytest.mark.unit
class TestApplyCommand:
    """Test apply command."""

    def test_apply_changed(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        mock_reconciler.ensure_deployment.return_value = True

        result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 0, result.output
        assert "applied" in result.stdout
        info = mock_reconciler.ensure_deployment.call_args.args[0]
        assert info.namespace == "openshift-machine-api"
        assert info.owner is not None
        patched_reconciler.assert_called_once_with(info.owner)

    def test_apply_unchanged(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        mock_reconciler.ensure_deployment.return_value = False

        result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 0, result.output
        assert "unchanged" in result.stdout
        mock_reconciler.get_deployment_state.assert_not_called()

    def test_apply_wait_available(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        mock_reconciler.ensure_deployment.return_value = True
        mock_reconciler.get_deployment_state.return_value = RolloutState.AVAILABLE

        result = cli_runner.invoke(app, _args(provisioning_file, images_file, "--wait"))

        assert result.exit_code == 0, result.output
        assert "Available" in result.stdout

    def test_apply_wait_replica_failure(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        """A failed rollout exits with code 2."""
        mock_reconciler.ensure_deployment.return_value = True
        mock_reconciler.get_deployment_state.return_value = RolloutState.REPLICA_FAILURE

        result = cli_runner.invoke(app, _args(provisioning_file, images_file, "-w"))

        assert result.exit_code == 2

    def test_apply_selector_conflict(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        mock_reconciler.ensure_deployment.side_effect = SelectorConflictError(
            "Unable to apply Metal3 deployment", RuntimeError("immutable")
        )

        result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 1
        assert "outdated pod selector" in result.output

    def test_apply_delete_failure(
        self,
        cli_runner: CliRunner,
        patched_reconciler: MagicMock,
        mock_reconciler: MagicMock,
        provisioning_file: Path,
        images_file: Path,
    ) -> None:
        mock_reconciler.ensure_deployment.side_effect = DeploymentDeleteError(
            "Unable to delete Metal3 deployment", RuntimeError("forbidden")
        )

        result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 1
        assert "Could not delete" in result.output

    def test_apply_connection_error(
        self, cli_runner: CliRunner, provisioning_file: Path, images_file: Path
    ) -> None:
        with patch(
            "metal3_provisioner.cli.commands.apply.get_reconciler",
            side_effect=KubernetesConnectionError(),
        ):
            result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 1
        assert "Cannot connect" in result.output

    def test_apply_validation_error_lists_causes(
        self, cli_runner: CliRunner, provisioning_file: Path, images_file: Path
    ) -> None:
        error = KubernetesValidationError(
            "Deployment is invalid",
            causes=["spec.selector: field is immutable"],
        )
        with patch(
            "metal3_provisioner.cli.commands.apply.get_reconciler",
            side_effect=error,
        ):
            result = cli_runner.invoke(app, _args(provisioning_file, images_file))

        assert result.exit_code == 1
        assert "Validation failed" in result.output
        assert "spec.selector: field is immutable" in result.output


@pytest.mark.unit
class TestWaitForRollout:
    """Test wait_for_rollout polling."""

    def test_returns_when_settled(self) -> None:
        reconciler = MagicMock()
        reconciler.get_deployment_state.side_effect = [
            RolloutState.PROGRESSING,
            RolloutState.PROGRESSING,
            RolloutState.AVAILABLE,
        ]
        sleep = MagicMock()

        state = wait_for_rollout(
            reconciler, "ns", RolloutWaitConfig(poll_interval=5, timeout=60), sleep=sleep
        )

        assert state == RolloutState.AVAILABLE
        assert reconciler.get_deployment_state.call_count == 3
        reconciler.get_deployment_state.assert_called_with("ns")
        assert [call.args[0] for call in sleep.call_args_list] == [5, 5]

    def test_replica_failure_stops_polling(self) -> None:
        reconciler = MagicMock()
        reconciler.get_deployment_state.return_value = RolloutState.REPLICA_FAILURE

        state = wait_for_rollout(reconciler, "ns", RolloutWaitConfig(), sleep=MagicMock())

        assert state == RolloutState.REPLICA_FAILURE
        reconciler.get_deployment_state.assert_called_once()

    def test_times_out(self) -> None:
        """A rollout that never settles raises after the attempt budget."""
        reconciler = MagicMock()
        reconciler.get_deployment_state.return_value = RolloutState.PROGRESSING

        with pytest.raises(KubernetesTimeoutError) as exc_info:
            wait_for_rollout(
                reconciler,
                "ns",
                RolloutWaitConfig(poll_interval=10, timeout=30),
                sleep=MagicMock(),
            )

        assert exc_info.value.timeout_seconds == 30
        assert reconciler.get_deployment_state.call_count == 4
