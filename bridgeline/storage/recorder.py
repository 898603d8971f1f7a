"""
Bridge traffic recording.

Taps one MessageBridge, keeps an ordered, redacted trace of everything it
sends and receives, and writes that trace as indented JSON when stopped.

Redaction is applied at the recording boundary: the trace never holds a raw
payload, and the envelopes flowing through the bridge are never mutated.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from ..core.bridge import MessageBridge
from ..core.redaction import RedactionPolicy, create_default_policy
from ..core.types import Direction, Envelope, Recording, RecordingEntry

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class RecorderError(RuntimeError):
    """Raised when a recorder is used out of order."""


class BridgeRecorder:
    """
    Explicit, boring traffic recorder.

    Example:
        recorder = BridgeRecorder(bridge)
        recorder.start("recordings/session.json")
        ...
        recorder.stop()
    """

    def __init__(
        self,
        bridge: MessageBridge,
        redaction_policy: Optional[RedactionPolicy] = None,
    ):
        if bridge is None:
            raise ValueError("bridge is required")
        self.bridge = bridge
        self.redaction_policy = redaction_policy or create_default_policy()

        self._lock = threading.Lock()
        self._recording: Optional[Recording] = None
        self._output_path: Optional[str] = None
        self._disposers: List[Callable[[], None]] = []
        self._is_recording = False
        self._unwritten = False

    def __enter__(self) -> "BridgeRecorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def is_recording(self) -> bool:
        return self._is_recording

    @property
    def recording(self) -> Optional[Recording]:
        return self._recording

    @property
    def output_path(self) -> Optional[str]:
        return self._output_path

    def start(self, path: PathLike) -> None:
        """
        Begin recording to path.

        Raises:
            RecorderError: If already recording
            ValueError: If path is empty
        """
        if self._is_recording:
            raise RecorderError("Recorder already started.")

        path = os.fspath(path) if path is not None else ""
        if not path.strip():
            raise ValueError("Recording path is required.")

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._output_path = path
        self._recording = Recording()
        self._unwritten = False
        self._disposers = [
            self.bridge.add_sent_tap(self._on_sent),
            self.bridge.add_received_tap(self._on_received),
        ]
        self._is_recording = True
        logger.info("recording bridge traffic to %s", path)

    def stop(self) -> None:
        """
        Stop recording and write the trace.

        A write failure propagates; the trace is kept, so calling stop()
        again retries the write. No-op once the trace has been written.
        """
        if self._is_recording:
            for dispose in self._disposers:
                dispose()
            self._disposers = []
            self._is_recording = False
            self._unwritten = True

        if not self._unwritten or self._recording is None or not self._output_path:
            return

        with self._lock:
            document = self._recording.to_dict()

        with open(self._output_path, "w", encoding="utf-8") as f:
            f.write(json.dumps(document, indent=2, ensure_ascii=False))
        self._unwritten = False

        logger.info(
            "wrote %d recorded messages to %s",
            len(document["messages"]),
            self._output_path,
        )

    def _on_sent(self, envelope: Envelope, raw: str) -> None:
        self._add_entry(Direction.OUTBOUND, envelope)

    def _on_received(self, envelope: Envelope, raw: str) -> None:
        self._add_entry(Direction.INBOUND, envelope)

    def _add_entry(self, direction: Direction, envelope: Envelope) -> None:
        entry = RecordingEntry(
            timestamp_utc=_utc_now(),
            direction=direction.value,
            type=envelope.type,
            correlation_id=envelope.correlation_id,
            payload=self.redaction_policy.redact(envelope.payload),
        )
        with self._lock:
            if self._recording is not None:
                self._recording.messages.append(entry)


def _utc_now() -> str:
    """ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
