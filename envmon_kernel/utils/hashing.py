"""
Deterministic hashing utilities for the audit chain.

Hashes must be reproducible: canonical JSON (sorted keys, no whitespace)
with explicit handling of datetime and UUID values.
"""

import hashlib
import json
from datetime import date, datetime
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: Any) -> str:
    """Convert data to its canonical JSON string."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def hash_payload(payload: dict) -> str:
    """Hex-encoded SHA-256 of the canonical JSON of ``payload``."""
    return hashlib.sha256(canonicalize_json(payload).encode("utf-8")).hexdigest()


def hash_audit_event(
    action: str,
    entity_type: str,
    entity_id: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """Chain hash of one audit event; ``prev_hash`` None marks the first event."""
    parts = [action, entity_type, entity_id, payload_hash, prev_hash or ""]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
