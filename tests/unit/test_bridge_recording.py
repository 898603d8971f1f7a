"""
Tests for BridgeRecorder.

These tests verify:
1. Outbound and inbound traffic is captured in arrival order
2. Payloads are redacted before they are stored
3. Misuse is reported (double start, empty path)
4. stop() is idempotent and writes the trace once; a failed write can be retried
"""

import json
import os
import tempfile
import unittest

from bridgeline import (
    REDACTED,
    BridgeRecorder,
    Envelope,
    InMemoryTransport,
    MessageBridge,
    RecorderError,
)


class TestBridgeRecorder(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.transport = InMemoryTransport()
        self.bridge = MessageBridge()
        self.bridge.initialize(self.transport)
        self.recorder = BridgeRecorder(self.bridge)

    def tearDown(self):
        self.recorder.stop()
        self.tmpdir.cleanup()

    def _path(self, *parts):
        return os.path.join(self.tmpdir.name, *parts)

    def _load(self, path):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def test_records_outbound_then_inbound_redacted(self):
        """One send and one receive produce two redacted entries in order."""
        path = self._path("session.json")
        self.recorder.start(path)

        self.bridge.send("A", {"token": "secret-1"})
        self.transport.emit(
            Envelope.create("B", {"nested": {"password": "secret-2"}}).to_json()
        )
        self.recorder.stop()

        messages = self._load(path)["messages"]
        self.assertEqual(len(messages), 2)

        self.assertEqual(messages[0]["direction"], "outbound")
        self.assertEqual(messages[0]["type"], "A")
        self.assertEqual(messages[0]["payload"]["token"], REDACTED)

        self.assertEqual(messages[1]["direction"], "inbound")
        self.assertEqual(messages[1]["type"], "B")
        self.assertEqual(messages[1]["payload"]["nested"]["password"], REDACTED)

        text = json.dumps(messages)
        self.assertNotIn("secret-1", text)
        self.assertNotIn("secret-2", text)

    def test_entries_carry_correlation_id_and_timestamp(self):
        path = self._path("session.json")
        self.recorder.start(path)

        envelope = self.bridge.send("A")
        self.recorder.stop()

        entry = self._load(path)["messages"][0]
        self.assertEqual(entry["correlationId"], envelope.correlation_id)
        self.assertTrue(entry["timestampUtc"].endswith("+00:00"))

    def test_builtin_reply_is_recorded(self):
        """An inbound PING and the PONG it triggers are both captured."""
        path = self._path("session.json")
        self.recorder.start(path)

        self.transport.emit(Envelope.create("PING").to_json())
        self.recorder.stop()

        messages = self._load(path)["messages"]
        self.assertEqual(
            [(m["direction"], m["type"]) for m in messages],
            [("inbound", "PING"), ("outbound", "PONG")],
        )

    def test_start_twice_raises(self):
        self.recorder.start(self._path("one.json"))

        with self.assertRaises(RecorderError):
            self.recorder.start(self._path("two.json"))

    def test_empty_path_raises(self):
        for path in ("", "   ", None):
            with self.assertRaises(ValueError):
                self.recorder.start(path)
        self.assertFalse(self.recorder.is_recording)

    def test_start_creates_parent_directories(self):
        path = self._path("a", "b", "session.json")
        self.recorder.start(path)
        self.recorder.stop()

        self.assertTrue(os.path.isfile(path))
        self.assertEqual(self._load(path), {"messages": []})

    def test_stop_is_idempotent(self):
        """A second stop() neither rewrites nor raises."""
        path = self._path("session.json")
        self.recorder.start(path)
        self.bridge.send("A")
        self.recorder.stop()
        os.remove(path)

        self.recorder.stop()

        self.assertFalse(os.path.exists(path))

    def test_write_failure_propagates_and_stop_can_retry(self):
        """An unwritable destination raises from stop(); a later stop() writes."""
        path = self._path("session.json")
        self.recorder.start(path)
        self.bridge.send("A", {"password": "p"})
        os.mkdir(path)

        with self.assertRaises(OSError):
            self.recorder.stop()
        self.assertFalse(self.recorder.is_recording)

        os.rmdir(path)
        self.recorder.stop()

        messages = self._load(path)["messages"]
        self.assertEqual([m["type"] for m in messages], ["A"])
        self.assertEqual(messages[0]["payload"]["password"], REDACTED)

    def test_traffic_after_stop_is_not_recorded(self):
        path = self._path("session.json")
        self.recorder.start(path)
        self.recorder.stop()

        self.bridge.send("LATE")

        self.assertEqual(self.recorder.recording.messages, [])

    def test_recorder_can_restart_on_new_file(self):
        first = self._path("first.json")
        second = self._path("second.json")

        self.recorder.start(first)
        self.bridge.send("ONE")
        self.recorder.stop()
        self.recorder.start(second)
        self.bridge.send("TWO")
        self.recorder.stop()

        self.assertEqual([m["type"] for m in self._load(first)["messages"]], ["ONE"])
        self.assertEqual([m["type"] for m in self._load(second)["messages"]], ["TWO"])

    def test_requires_bridge(self):
        with self.assertRaises(ValueError):
            BridgeRecorder(None)


if __name__ == "__main__":
    unittest.main()
