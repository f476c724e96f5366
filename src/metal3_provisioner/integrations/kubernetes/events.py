"""Event recorders for human-readable reconcile events.

Events are a side channel: a recorder never raises into the reconciler.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal, Protocol

import structlog

if TYPE_CHECKING:
    from kubernetes.client import V1ObjectReference

    from metal3_provisioner.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()

EventType = Literal["Normal", "Warning"]

COMPONENT_NAME = "metal3-provisioner"


class EventRecorder(Protocol):
    """Anything that can record an event about an object."""

    def event(self, event_type: EventType, reason: str, message: str) -> None: ...


class LoggingEventRecorder:
    """Records events as structured log lines only."""

    def __init__(self, component: str = COMPONENT_NAME) -> None:
        self._log = logger.bind(component=component)

    def event(self, event_type: EventType, reason: str, message: str) -> None:
        if event_type == "Warning":
            self._log.warning("event_recorded", reason=reason, message=message)
        else:
            self._log.info("event_recorded", reason=reason, message=message)


class KubernetesEventRecorder(LoggingEventRecorder):
    """Records events as core/v1 Events attached to an involved object.

    Every event is logged as well; a failure to post the Event is logged and
    otherwise ignored.
    """

    def __init__(
        self,
        client: KubernetesClient,
        involved_object: V1ObjectReference,
        component: str = COMPONENT_NAME,
    ) -> None:
        super().__init__(component)
        self._client = client
        self._involved_object = involved_object
        self._component = component

    def event(self, event_type: EventType, reason: str, message: str) -> None:
        from kubernetes.client import CoreV1Event, V1EventSource, V1ObjectMeta

        super().event(event_type, reason, message)

        namespace = self._involved_object.namespace or self._client.default_namespace
        now = datetime.now(UTC)
        body = CoreV1Event(
            metadata=V1ObjectMeta(
                generate_name=f"{self._involved_object.name}.",
                namespace=namespace,
            ),
            involved_object=self._involved_object,
            reason=reason,
            message=message,
            type=event_type,
            source=V1EventSource(component=self._component),
            first_timestamp=now,
            last_timestamp=now,
            count=1,
        )
        try:
            self._client.core_v1.create_namespaced_event(namespace=namespace, body=body)
        except Exception as e:
            self._log.warning("event_post_failed", reason=reason, error=str(e))
