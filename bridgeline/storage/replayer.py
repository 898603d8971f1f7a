"""
Deterministic replay of recorded bridge traffic.

Core Invariants:
- Entries are replayed in stored list order, never re-sorted by timestamp
- Outbound entries are re-sent through the bridge with their recorded
  correlation id
- Inbound entries are re-injected through the bridge's inbound dispatch
- Anything other than "outbound" / "inbound" is a hard failure
- Replay is read-only: the recording file is never modified
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional, Union

from ..core.bridge import MessageBridge
from ..core.types import Direction, Recording

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


# =============================================================================
# Exceptions
# =============================================================================


class ReplayError(Exception):
    """Base exception for replay-related errors."""

    pass


class MalformedRecordingError(ReplayError):
    """
    Raised when a recording file cannot be turned into a Recording.

    The error names the file and, when known, the offending entry.
    """

    def __init__(self, message: str, path: str, entry_idx: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.entry_idx = entry_idx

    def __str__(self) -> str:
        location = f"path={self.path}"
        if self.entry_idx is not None:
            location += f", entry={self.entry_idx}"
        return f"MalformedRecordingError({location}): {self.args[0]}"


class UnknownDirectionError(ReplayError):
    """Raised when an entry's direction is neither "outbound" nor "inbound"."""

    def __init__(self, direction: Any, entry_idx: int):
        super().__init__(f"Unknown direction '{direction}' at entry {entry_idx}.")
        self.direction = direction
        self.entry_idx = entry_idx


# =============================================================================
# Loading
# =============================================================================


def load_recording(path: PathLike) -> Recording:
    """
    Read and validate a recording file.

    Raises:
        ValueError: If path is empty
        FileNotFoundError: If the file does not exist
        MalformedRecordingError: If the content is not a valid recording
    """
    path = os.fspath(path) if path is not None else ""
    if not path.strip():
        raise ValueError("Replay path is required.")

    if not os.path.isfile(path):
        raise FileNotFoundError(f"Replay file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    try:
        document = json.loads(text)
    except ValueError as exc:
        raise MalformedRecordingError(f"Replay file malformed: {exc}", path) from exc
    except RecursionError as exc:
        raise MalformedRecordingError(
            "Replay file malformed: JSON is nested too deeply.", path
        ) from exc

    if not isinstance(document, dict):
        raise MalformedRecordingError("Replay file malformed: root must be an object.", path)

    messages = document.get("messages")
    if not isinstance(messages, list):
        raise MalformedRecordingError(
            "Replay file malformed: 'messages' must be a list.", path
        )

    for idx, entry in enumerate(messages):
        if not isinstance(entry, dict):
            raise MalformedRecordingError("entry must be an object.", path, idx)
        if not isinstance(entry.get("type"), str):
            raise MalformedRecordingError("entry 'type' must be a string.", path, idx)
        correlation_id = entry.get("correlationId")
        if correlation_id is not None and not isinstance(correlation_id, str):
            raise MalformedRecordingError(
                "entry 'correlationId' must be a string.", path, idx
            )

    return Recording.from_dict(document)


# =============================================================================
# Replayer
# =============================================================================


class BridgeReplayer:
    """
    Re-drives a MessageBridge from a persisted Recording.

    Example:
        replayer = BridgeReplayer(bridge)
        replayer.play("recordings/session.json")
    """

    def __init__(self, bridge: MessageBridge):
        if bridge is None:
            raise ValueError("bridge is required")
        self.bridge = bridge

    def play(self, path: PathLike) -> Recording:
        """Replay every entry of the recording at path, in list order."""
        recording = load_recording(path)
        self.play_recording(recording)
        logger.info("replayed %d messages from %s", len(recording.messages), path)
        return recording

    def play_recording(self, recording: Recording) -> None:
        for idx, entry in enumerate(recording.messages):
            envelope = entry.to_envelope()

            if entry.direction == Direction.OUTBOUND.value:
                self.bridge.send_envelope(envelope)
            elif entry.direction == Direction.INBOUND.value:
                self.bridge.receive_json(envelope.to_json())
            else:
                raise UnknownDirectionError(entry.direction, idx)
