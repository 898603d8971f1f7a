from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EnvelopeError(ValueError):
    """Raised when raw text does not decode to a well-formed envelope."""


class Direction(str, Enum):
    """Which way a recorded envelope travelled across the bridge."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"


def new_correlation_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Envelope:
    """
    The unit exchanged over the transport.

    Attributes:
        type: Message type identifier (e.g. "PING", "REQUEST_TREE")
        correlation_id: Identifier tying a response to its request
        payload: Any JSON value, or None
        error: Error text when this envelope is a failed correlated response
    """

    type: str
    correlation_id: str
    payload: Any = None
    error: Optional[str] = None

    @classmethod
    def create(
        cls,
        type: str,
        payload: Any = None,
        correlation_id: Optional[str] = None,
    ) -> "Envelope":
        return cls(
            type=type,
            correlation_id=correlation_id or new_correlation_id(),
            payload=payload,
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "correlationId": self.correlation_id,
            "payload": self.payload,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Any) -> "Envelope":
        if not isinstance(data, dict):
            raise EnvelopeError(
                f"envelope must be a JSON object, got {type(data).__name__}"
            )

        message_type = data.get("type")
        if not isinstance(message_type, str):
            raise EnvelopeError("envelope field 'type' must be a string")

        correlation_id = data.get("correlationId")
        if correlation_id is not None and not isinstance(correlation_id, str):
            raise EnvelopeError("envelope field 'correlationId' must be a string")

        error = data.get("error")
        if error is not None and not isinstance(error, str):
            raise EnvelopeError("envelope field 'error' must be a string")

        return cls(
            type=message_type,
            correlation_id=correlation_id or "",
            payload=data.get("payload"),
            error=error,
        )

    @classmethod
    def from_json(cls, raw: str) -> "Envelope":
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise EnvelopeError(f"envelope is not valid JSON: {exc}") from exc
        except RecursionError as exc:
            raise EnvelopeError("envelope JSON is nested too deeply") from exc
        return cls.from_dict(data)


@dataclass(frozen=True)
class RecordingEntry:
    """
    One captured envelope.

    The timestamp is advisory; the position of the entry inside
    Recording.messages is what determines replay order.
    """

    timestamp_utc: str
    direction: str
    type: str
    correlation_id: Optional[str]
    payload: Any = None

    def to_envelope(self) -> Envelope:
        return Envelope.create(self.type, self.payload, self.correlation_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestampUtc": self.timestamp_utc,
            "direction": self.direction,
            "type": self.type,
            "correlationId": self.correlation_id,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordingEntry":
        return cls(
            timestamp_utc=data.get("timestampUtc"),
            direction=data.get("direction"),
            type=data["type"],
            correlation_id=data.get("correlationId"),
            payload=data.get("payload"),
        )


@dataclass
class Recording:
    """An ordered trace of one bridge's traffic."""

    messages: List[RecordingEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"messages": [entry.to_dict() for entry in self.messages]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recording":
        return cls(messages=[RecordingEntry.from_dict(e) for e in data["messages"]])
