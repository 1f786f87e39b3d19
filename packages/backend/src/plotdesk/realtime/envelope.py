"""Notification envelope — the unit sent from the gateway to dashboards.

Learn: An envelope is {type, data, timestamp}. ``data`` stays small and
flat: the ids of what changed plus the foreign keys a subscriber needs to
decide what to refetch. Full records never travel over this channel, since
every open connection gets every envelope; the dashboard re-reads through
the authenticated REST API instead.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

_SCALARS = (str, int, float, bool, type(None))


class EnvelopeError(ValueError):
    """Raised for payloads that can't go on the wire, or frames that can't be read."""


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def validate_payload(payload: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return a plain-dict copy of ``payload`` or raise EnvelopeError.

    Values must be JSON scalars or lists of scalars (e.g. ``plotIds``).
    """
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise EnvelopeError(f"payload must be a mapping, got {type(payload).__name__}")

    clean: dict[str, Any] = {}
    for key, value in payload.items():
        if not isinstance(key, str):
            raise EnvelopeError(f"payload keys must be strings, got {key!r}")
        if isinstance(value, (list, tuple)):
            if not all(isinstance(item, _SCALARS) for item in value):
                raise EnvelopeError(f"payload field {key!r} must be a flat list")
            clean[key] = list(value)
        elif isinstance(value, _SCALARS):
            clean[key] = value
        else:
            raise EnvelopeError(
                f"payload field {key!r} has unsupported type {type(value).__name__}"
            )
    return clean


@dataclass(frozen=True)
class Envelope:
    """Immutable server → client message."""

    type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_utcnow_iso)

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @classmethod
    def build(cls, topic: str, payload: Optional[Mapping[str, Any]] = None) -> "Envelope":
        """Build an envelope stamped with the current UTC time."""
        return cls(type=topic, data=validate_payload(payload))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": dict(self.data), "timestamp": self.timestamp}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


def decode_frame(raw: str | bytes) -> dict[str, Any]:
    """Parse an inbound text frame into a dict.

    Raises EnvelopeError when the frame isn't a JSON object.
    """
    try:
        message = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise EnvelopeError(f"Malformed frame: {e}") from e
    if not isinstance(message, dict):
        raise EnvelopeError("Frame is not a JSON object")
    return message
