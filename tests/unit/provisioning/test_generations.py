"""Unit tests for generation bookkeeping."""

from __future__ import annotations

import pytest
from kubernetes.client import (
    V1Deployment,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodTemplateSpec,
)

from metal3_provisioner.provisioning.generations import (
    expected_deployment_generation,
    set_deployment_generation,
)
from metal3_provisioner.provisioning.models import GenerationStatus


def _deployment(generation: int | None = None, namespace: str = "ns") -> V1Deployment:
    return V1Deployment(
        metadata=V1ObjectMeta(name="metal3", namespace=namespace, generation=generation),
        spec=V1DeploymentSpec(
            selector=V1LabelSelector(match_labels={"k8s-app": "metal3"}),
            template=V1PodTemplateSpec(),
        ),
    )


@pytest.mark.unit
class TestGenerations:
    """Tests for expected_deployment_generation and set_deployment_generation."""

    def test_unknown_generation(self) -> None:
        """Nothing recorded means -1."""
        assert expected_deployment_generation(_deployment(), []) == -1

    def test_record_then_expect(self) -> None:
        """A recorded generation is returned for the same Deployment."""
        generations: list[GenerationStatus] = []

        set_deployment_generation(generations, _deployment(3))

        assert expected_deployment_generation(_deployment(), generations) == 3
        assert generations[0].group == "apps"
        assert generations[0].resource == "deployments"

    def test_update_existing_entry(self) -> None:
        """Recording again updates the entry instead of adding one."""
        generations: list[GenerationStatus] = []

        set_deployment_generation(generations, _deployment(3))
        set_deployment_generation(generations, _deployment(4))

        assert len(generations) == 1
        assert generations[0].last_generation == 4

    def test_entries_keyed_by_namespace(self) -> None:
        """Deployments in other namespaces are tracked separately."""
        generations: list[GenerationStatus] = []

        set_deployment_generation(generations, _deployment(3, namespace="a"))

        assert expected_deployment_generation(_deployment(namespace="b"), generations) == -1

    def test_other_resources_ignored(self) -> None:
        """Entries for other resource types do not match."""
        generations = [
            GenerationStatus(
                group="",
                resource="services",
                namespace="ns",
                name="metal3",
                last_generation=7,
            )
        ]

        assert expected_deployment_generation(_deployment(), generations) == -1

    def test_none_deployment_ignored(self) -> None:
        """Nothing is recorded for a missing Deployment."""
        generations: list[GenerationStatus] = []

        set_deployment_generation(generations, None)

        assert generations == []
