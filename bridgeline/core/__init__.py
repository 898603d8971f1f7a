"""Core types and logic for Bridgeline."""

from .bridge import (
    CONNECTION_STATUS,
    PING,
    PONG,
    UI_READY,
    BridgeError,
    BridgeNotInitializedError,
    BridgeTimeoutError,
    MessageBridge,
    PendingRequest,
    PendingRequestRegistry,
)
from .canon import NUMERIC_PRECISION, canonicalize, normalize_json, normalize_value
from .compare import SnapshotDiff, build_diff_summary, compare_snapshots
from .config import BridgeSettings
from .redaction import (
    DEFAULT_SENSITIVE_KEYS,
    REDACTED,
    RedactionPolicy,
    create_default_policy,
)
from .schema import SnapshotSchemaError, normalize_snapshot, validate_snapshot
from .transport import InMemoryTransport, Transport
from .types import Direction, Envelope, EnvelopeError, Recording, RecordingEntry

__all__ = [
    # Core types
    "Direction",
    "Envelope",
    "EnvelopeError",
    "Recording",
    "RecordingEntry",
    # Transport
    "Transport",
    "InMemoryTransport",
    # Bridge
    "BridgeSettings",
    "MessageBridge",
    "PendingRequest",
    "PendingRequestRegistry",
    "BridgeError",
    "BridgeNotInitializedError",
    "BridgeTimeoutError",
    "PING",
    "PONG",
    "UI_READY",
    "CONNECTION_STATUS",
    # Redaction
    "DEFAULT_SENSITIVE_KEYS",
    "REDACTED",
    "RedactionPolicy",
    "create_default_policy",
    # Snapshot normalization
    "NUMERIC_PRECISION",
    "canonicalize",
    "normalize_json",
    "normalize_value",
    "SnapshotSchemaError",
    "normalize_snapshot",
    "validate_snapshot",
    # Snapshot comparison
    "SnapshotDiff",
    "build_diff_summary",
    "compare_snapshots",
]
