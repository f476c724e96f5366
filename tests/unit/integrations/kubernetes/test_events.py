"""Unit tests for event recorders."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes.client import V1ObjectReference

from metal3_provisioner.integrations.kubernetes.events import (
    COMPONENT_NAME,
    KubernetesEventRecorder,
    LoggingEventRecorder,
)


@pytest.fixture
def owner_ref() -> V1ObjectReference:
    return V1ObjectReference(
        api_version="metal3.io/v1alpha1",
        kind="Provisioning",
        name="provisioning-configuration",
        uid="1234",
    )


@pytest.mark.unit
@pytest.mark.kubernetes
class TestLoggingEventRecorder:
    """Test LoggingEventRecorder."""

    def test_event_does_not_raise(self) -> None:
        recorder = LoggingEventRecorder()
        recorder.event("Normal", "DeploymentUpdated", "applied")
        recorder.event("Warning", "DeploymentApplyFailed", "failed")


@pytest.mark.unit
@pytest.mark.kubernetes
class TestKubernetesEventRecorder:
    """Test KubernetesEventRecorder."""

    def test_posts_event(self, owner_ref: V1ObjectReference) -> None:
        """Events are posted against the involved object."""
        client = MagicMock()
        client.default_namespace = "openshift-machine-api"
        recorder = KubernetesEventRecorder(client, owner_ref)

        recorder.event("Warning", "DeploymentSelectorConflict", "deleted")

        kwargs = client.core_v1.create_namespaced_event.call_args.kwargs
        assert kwargs["namespace"] == "openshift-machine-api"
        body = kwargs["body"]
        assert body.involved_object is owner_ref
        assert body.type == "Warning"
        assert body.reason == "DeploymentSelectorConflict"
        assert body.message == "deleted"
        assert body.source.component == COMPONENT_NAME
        assert body.metadata.generate_name == "provisioning-configuration."

    def test_uses_object_namespace(self, owner_ref: V1ObjectReference) -> None:
        owner_ref.namespace = "other"
        client = MagicMock()
        recorder = KubernetesEventRecorder(client, owner_ref)

        recorder.event("Normal", "DeploymentUpdated", "applied")

        assert client.core_v1.create_namespaced_event.call_args.kwargs["namespace"] == "other"

    def test_post_failure_is_ignored(self, owner_ref: V1ObjectReference) -> None:
        """A failed post never reaches the caller."""
        client = MagicMock()
        client.default_namespace = "openshift-machine-api"
        client.core_v1.create_namespaced_event.side_effect = RuntimeError("forbidden")
        recorder = KubernetesEventRecorder(client, owner_ref)

        recorder.event("Normal", "DeploymentUpdated", "applied")
