"""File-backed recording, replay and snapshot baselines for Bridgeline."""

from .baseline import SnapshotCheck, SnapshotStatus, check_snapshot
from .recorder import BridgeRecorder, RecorderError
from .replayer import (
    BridgeReplayer,
    MalformedRecordingError,
    ReplayError,
    UnknownDirectionError,
    load_recording,
)

__all__ = [
    "BridgeRecorder",
    "RecorderError",
    "BridgeReplayer",
    "ReplayError",
    "MalformedRecordingError",
    "UnknownDirectionError",
    "load_recording",
    "SnapshotCheck",
    "SnapshotStatus",
    "check_snapshot",
]
