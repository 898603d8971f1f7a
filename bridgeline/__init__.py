import logging

from .core import (
    CONNECTION_STATUS,
    # Redaction
    DEFAULT_SENSITIVE_KEYS,
    # Snapshot normalization
    NUMERIC_PRECISION,
    PING,
    PONG,
    REDACTED,
    UI_READY,
    # Bridge
    BridgeError,
    BridgeNotInitializedError,
    BridgeSettings,
    BridgeTimeoutError,
    # Core types
    Direction,
    Envelope,
    EnvelopeError,
    # Transport
    InMemoryTransport,
    MessageBridge,
    PendingRequest,
    PendingRequestRegistry,
    Recording,
    RecordingEntry,
    RedactionPolicy,
    # Snapshot comparison
    SnapshotDiff,
    SnapshotSchemaError,
    Transport,
    build_diff_summary,
    canonicalize,
    compare_snapshots,
    create_default_policy,
    normalize_json,
    normalize_snapshot,
    normalize_value,
    validate_snapshot,
)
from .logging_setup import configure_logging
from .storage import (
    BridgeRecorder,
    BridgeReplayer,
    MalformedRecordingError,
    RecorderError,
    ReplayError,
    SnapshotCheck,
    SnapshotStatus,
    UnknownDirectionError,
    check_snapshot,
    load_recording,
)
from .version import BRIDGELINE_VERSION

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "BRIDGELINE_VERSION",
    # Logging
    "configure_logging",
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
    # Recording and replay
    "BridgeRecorder",
    "RecorderError",
    "BridgeReplayer",
    "ReplayError",
    "MalformedRecordingError",
    "UnknownDirectionError",
    "load_recording",
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
    # Baselines
    "SnapshotCheck",
    "SnapshotStatus",
    "check_snapshot",
]
