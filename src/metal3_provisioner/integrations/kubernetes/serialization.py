"""Serialization helpers for kubernetes client model objects."""

from __future__ import annotations

import hashlib
import json
from typing import Any

SPEC_HASH_ANNOTATION = "operator.openshift.io/spec-hash"

# Fields added by the API server that never belong in a rendered manifest
SERVER_MANAGED_METADATA_FIELDS = (
    "creationTimestamp",
    "generation",
    "managedFields",
    "resourceVersion",
    "selfLink",
    "uid",
)


def to_manifest(obj: Any) -> dict[str, Any]:
    """Convert a kubernetes model object into a plain manifest dict.

    Uses the client's own serializer so keys come out in their camelCase
    wire form and ``None`` fields are dropped.
    """
    from kubernetes.client import ApiClient

    manifest: dict[str, Any] = ApiClient().sanitize_for_serialization(obj)
    return manifest


def strip_server_fields(manifest: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *manifest* without status and server-managed metadata."""
    cleaned = dict(manifest)
    cleaned.pop("status", None)
    metadata = cleaned.get("metadata")
    if isinstance(metadata, dict):
        metadata = dict(metadata)
        for meta_field in SERVER_MANAGED_METADATA_FIELDS:
            metadata.pop(meta_field, None)
        cleaned["metadata"] = metadata
    return cleaned


def spec_hash(obj: Any) -> str:
    """Stable SHA-256 of an object's ``spec``, used to detect spec changes."""
    spec = to_manifest(getattr(obj, "spec", None))
    encoded = json.dumps(spec, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def to_yaml(obj: Any) -> str:
    """Render a kubernetes model object as a YAML document."""
    import yaml

    return yaml.safe_dump(to_manifest(obj), default_flow_style=False, sort_keys=False)


def parse_status_body(body: Any) -> tuple[str | None, list[str]]:
    """Extract the message and ``"<field>: <message>"`` causes of a Status body.

    Returns ``(None, [])`` when *body* is not a JSON ``Status`` object.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return None, []
    try:
        status = json.loads(body)
    except ValueError:
        return None, []
    if not isinstance(status, dict):
        return None, []

    causes = []
    for cause in (status.get("details") or {}).get("causes") or []:
        field = cause.get("field")
        text = cause.get("message", "")
        causes.append(f"{field}: {text}" if field else text)
    return status.get("message"), causes
