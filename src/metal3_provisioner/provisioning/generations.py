"""Generation bookkeeping for no-op update detection.

The caller keeps a list of :class:`GenerationStatus` entries (in the
Provisioning resource status). After each write we record the generation the
API server assigned; on the next apply, a stored object still at that
generation has not been touched by anyone else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from metal3_provisioner.provisioning.models import GenerationStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

DEPLOYMENT_GROUP = "apps"
DEPLOYMENT_RESOURCE = "deployments"

# No recorded generation: always write
UNKNOWN_GENERATION = -1


def _find(
    generations: Sequence[GenerationStatus], namespace: str, name: str
) -> GenerationStatus | None:
    for entry in generations:
        if (
            entry.group == DEPLOYMENT_GROUP
            and entry.resource == DEPLOYMENT_RESOURCE
            and entry.namespace == namespace
            and entry.name == name
        ):
            return entry
    return None


def expected_deployment_generation(
    deployment: Any, generations: Sequence[GenerationStatus]
) -> int:
    """Generation recorded for *deployment*, or -1 when none is recorded."""
    entry = _find(generations, deployment.metadata.namespace, deployment.metadata.name)
    return entry.last_generation if entry is not None else UNKNOWN_GENERATION


def set_deployment_generation(generations: list[GenerationStatus], deployment: Any) -> None:
    """Record the generation of a Deployment that was just written."""
    if deployment is None:
        return
    namespace = deployment.metadata.namespace
    name = deployment.metadata.name
    generation = deployment.metadata.generation or 0
    entry = _find(generations, namespace, name)
    if entry is not None:
        entry.last_generation = generation
        return
    generations.append(
        GenerationStatus(
            group=DEPLOYMENT_GROUP,
            resource=DEPLOYMENT_RESOURCE,
            namespace=namespace,
            name=name,
            last_generation=generation,
        )
    )
