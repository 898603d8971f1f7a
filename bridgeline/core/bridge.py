"""
Request/response messaging over a single, unordered string channel.

The bridge owns one transport. Outbound traffic is either fire-and-forget
(send) or correlated (send_request), in which case the caller blocks until a
response with the same correlation id arrives or the timeout expires,
whichever happens first.

Core Invariants:
- At most one pending request per correlation id
- A pending request is settled at most once: first of {response, timeout}
- Registry cleanup is idempotent; removing twice is a no-op
- Nothing raised while handling inbound text crosses the transport boundary
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Generic, List, Optional, Set, TypeVar

from .config import BridgeSettings
from .transport import Transport
from .types import Envelope, EnvelopeError

logger = logging.getLogger(__name__)

PING = "PING"
PONG = "PONG"
UI_READY = "UI_READY"
CONNECTION_STATUS = "CONNECTION_STATUS"

EnvelopeHandler = Callable[[Envelope], None]
TapHandler = Callable[[Envelope, str], None]
Disposer = Callable[[], None]

H = TypeVar("H")


# =============================================================================
# Exceptions
# =============================================================================


class BridgeError(Exception):
    """Base exception for bridge errors."""

    pass


class BridgeNotInitializedError(BridgeError, RuntimeError):
    """Raised when sending before initialize() has bound a transport."""

    def __init__(self, message: str = "MessageBridge not initialized. Call initialize() first."):
        super().__init__(message)


class BridgeTimeoutError(BridgeError, TimeoutError):
    """
    Raised when a correlated request receives no response within its budget.

    Not retried; the caller owns the decision to try again.
    """

    def __init__(self, message_type: str, timeout_ms: int):
        super().__init__(f"Request '{message_type}' timed out after {timeout_ms}ms.")
        self.message_type = message_type
        self.timeout_ms = timeout_ms


# =============================================================================
# Pending requests
# =============================================================================


class PendingRequest:
    """
    Single-assignment result cell for one in-flight request.

    resolve() and expire() race; whichever runs first wins and the other
    becomes a no-op returning False.
    """

    PENDING = "pending"
    RESOLVED = "resolved"
    EXPIRED = "expired"

    def __init__(self, correlation_id: str, message_type: str):
        self.correlation_id = correlation_id
        self.message_type = message_type
        self.response: Optional[Envelope] = None
        self.state = self.PENDING
        self._lock = threading.Lock()
        self._settled = threading.Event()

    @property
    def is_settled(self) -> bool:
        return self._settled.is_set()

    def resolve(self, response: Envelope) -> bool:
        with self._lock:
            if self.state != self.PENDING:
                return False
            self.response = response
            self.state = self.RESOLVED
        self._settled.set()
        return True

    def expire(self) -> bool:
        with self._lock:
            if self.state != self.PENDING:
                return False
            self.state = self.EXPIRED
        self._settled.set()
        return True

    def wait_until(self, deadline: float) -> bool:
        """Wait until settled or until the monotonic deadline passes."""
        while not self._settled.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._settled.wait(remaining)
        return True


class PendingRequestRegistry:
    """
    Correlation id -> PendingRequest, safe to use from several threads.

    Ids of requests that timed out or were cleared are remembered so a
    response arriving after the fact can be recognised and dropped. Only the
    most recent retired_limit ids are kept; dispose() does not reset them.
    """

    def __init__(self, retired_limit: int = 1024):
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingRequest] = {}
        self._retired: Deque[str] = deque(maxlen=retired_limit)
        self._retired_ids: Set[str] = set()

    def add(self, pending: PendingRequest) -> None:
        with self._lock:
            if pending.correlation_id in self._pending:
                raise BridgeError(
                    f"Failed to register pending request '{pending.correlation_id}'."
                )
            self._pending[pending.correlation_id] = pending

    def get(self, correlation_id: str) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending.get(correlation_id)

    def pop(self, correlation_id: str) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending.pop(correlation_id, None)

    def retire(self, correlation_id: str) -> None:
        with self._lock:
            self._pending.pop(correlation_id, None)
            self._remember(correlation_id)

    def _remember(self, correlation_id: str) -> None:
        if correlation_id in self._retired_ids:
            return
        if len(self._retired) == self._retired.maxlen:
            self._retired_ids.discard(self._retired[0])
        self._retired.append(correlation_id)
        self._retired_ids.add(correlation_id)

    def is_retired(self, correlation_id: str) -> bool:
        with self._lock:
            return correlation_id in self._retired_ids

    def clear(self) -> None:
        """Forget every pending request; their ids are retired, not lost."""
        with self._lock:
            for correlation_id in self._pending:
                self._remember(correlation_id)
            self._pending.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


# =============================================================================
# Publish/subscribe channels
# =============================================================================


class _Channel(Generic[H]):
    """Ordered list of handlers; add() hands back a disposer."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: List[H] = []

    def add(self, handler: H) -> Disposer:
        if handler is None:
            raise ValueError("handler is required")
        with self._lock:
            self._handlers.append(handler)

        def dispose() -> None:
            with self._lock:
                for i, existing in enumerate(self._handlers):
                    if existing is handler:
                        del self._handlers[i]
                        break

        return dispose

    def snapshot(self) -> List[H]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)


# =============================================================================
# Bridge
# =============================================================================


class MessageBridge:
    """
    Bi-directional JSON messaging over a Transport.

    Example:
        bridge = MessageBridge()
        bridge.initialize(transport)
        bridge.send("PING")
        reply = bridge.send_request("REQUEST_TREE", {"depth": 2}, timeout_ms=2000)
    """

    def __init__(self, settings: Optional[BridgeSettings] = None):
        self.settings = settings or BridgeSettings.default()
        self._transport: Optional[Transport] = None
        self._pending = PendingRequestRegistry()
        self._subscribers: Dict[str, _Channel[EnvelopeHandler]] = {}
        self._subscribers_lock = threading.Lock()
        self._all_subscribers: _Channel[EnvelopeHandler] = _Channel()
        self._sent_taps: _Channel[TapHandler] = _Channel()
        self._received_taps: _Channel[TapHandler] = _Channel()

    def __enter__(self) -> "MessageBridge":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    @property
    def is_initialized(self) -> bool:
        return self._transport is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, transport: Transport) -> None:
        """
        Bind to a transport, releasing any previously bound one.

        Requests still in flight on the old transport are left registered;
        they resolve if a matching response shows up, otherwise they time out.
        """
        if transport is None:
            raise ValueError("transport is required")

        if self._transport is not None:
            logger.debug("rebinding bridge; disposing previous transport")
            self._release_transport()

        self._transport = transport
        transport.add_message_handler(self._on_transport_message)

    def dispose(self) -> None:
        """
        Unbind and dispose the transport and retire every pending request.

        Pending callers are not woken; their own deadline ends the wait.
        """
        if self._transport is not None:
            self._release_transport()
        self._pending.clear()

    def _release_transport(self) -> None:
        transport = self._transport
        self._transport = None
        transport.remove_message_handler(self._on_transport_message)
        transport.dispose()

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, message_type: str, handler: EnvelopeHandler) -> Disposer:
        """Call handler(envelope) for uncorrelated inbound messages of one type."""
        with self._subscribers_lock:
            channel = self._subscribers.get(message_type)
            if channel is None:
                channel = _Channel()
                self._subscribers[message_type] = channel
        return channel.add(handler)

    def subscribe_all(self, handler: EnvelopeHandler) -> Disposer:
        """Call handler(envelope) for every uncorrelated inbound message."""
        return self._all_subscribers.add(handler)

    def add_sent_tap(self, handler: TapHandler) -> Disposer:
        """Observe every outbound envelope and its JSON, before it is posted."""
        return self._sent_taps.add(handler)

    def add_received_tap(self, handler: TapHandler) -> Disposer:
        """Observe every successfully parsed inbound envelope and its JSON."""
        return self._received_taps.add(handler)

    # -------------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------------

    def send(self, message_type: str, payload: Any = None) -> Envelope:
        """Send a one-way message; nothing is awaited."""
        envelope = Envelope.create(message_type, payload)
        self.send_envelope(envelope)
        return envelope

    def send_envelope(self, envelope: Envelope) -> None:
        """Send a pre-built envelope, keeping its correlation id."""
        transport = self._transport
        if transport is None:
            raise BridgeNotInitializedError()
        if envelope is None:
            raise ValueError("envelope is required")

        raw = envelope.to_json()
        self._publish_tap(self._sent_taps, envelope, raw)
        transport.post_message(raw)

    def send_connection_status(self) -> None:
        """Tell the peer the bridge is ready."""
        self.send(CONNECTION_STATUS, {"status": "connected"})

    def send_request(
        self,
        message_type: str,
        payload: Any = None,
        timeout_ms: Optional[int] = None,
    ) -> Envelope:
        """
        Send a request and block until its response arrives.

        Args:
            message_type: Request type
            payload: Request payload
            timeout_ms: Budget in milliseconds (settings default if None)

        Returns:
            The response envelope. A response carrying `error` is still
            returned; check Envelope.is_error.

        A response arriving after the timeout is dropped as long as its id
        is among the last 1024 retired ids; older stragglers are dispatched
        like any uncorrelated message.

        Raises:
            BridgeNotInitializedError: If no transport is bound
            BridgeTimeoutError: If no response arrives within the budget
        """
        if self._transport is None:
            raise BridgeNotInitializedError()

        budget_ms = self.settings.request_timeout_ms if timeout_ms is None else timeout_ms
        envelope = Envelope.create(message_type, payload)
        pending = PendingRequest(envelope.correlation_id, message_type)
        self._pending.add(pending)

        try:
            deadline = time.monotonic() + budget_ms / 1000.0
            self.send_envelope(envelope)
            pending.wait_until(deadline)

            # A response landing between the deadline and here still wins.
            if pending.expire():
                self._pending.retire(envelope.correlation_id)
                logger.debug(
                    "request %s (%s) timed out after %dms",
                    message_type,
                    envelope.correlation_id,
                    budget_ms,
                )
                raise BridgeTimeoutError(message_type, budget_ms)
            return pending.response
        finally:
            self._pending.pop(envelope.correlation_id)

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def receive_json(self, raw: str) -> None:
        """Inject inbound JSON as if the transport had delivered it."""
        if raw is None or not raw.strip():
            raise ValueError("JSON payload is required.")
        self._on_transport_message(raw)

    def _on_transport_message(self, raw: str) -> None:
        try:
            envelope = Envelope.from_json(raw)
        except EnvelopeError as exc:
            logger.warning("dropping malformed inbound message: %s", exc)
            return

        self._publish_tap(self._received_taps, envelope, raw)

        try:
            self._dispatch(envelope)
        except Exception:
            logger.exception("error handling inbound %s message", envelope.type)

    def _dispatch(self, envelope: Envelope) -> None:
        correlation_id = envelope.correlation_id
        if correlation_id:
            pending = self._pending.pop(correlation_id)
            if pending is not None and pending.resolve(envelope):
                return
            if pending is not None or self._pending.is_retired(correlation_id):
                logger.debug(
                    "late response %s (%s) dropped", envelope.type, correlation_id
                )
                return

        if envelope.type == PING:
            self.send(PONG)
        elif envelope.type == UI_READY:
            self.send_connection_status()
        else:
            self._publish(envelope)

    def _publish(self, envelope: Envelope) -> None:
        with self._subscribers_lock:
            channel = self._subscribers.get(envelope.type)
        handlers = channel.snapshot() if channel is not None else []
        handlers.extend(self._all_subscribers.snapshot())

        for handler in handlers:
            try:
                handler(envelope)
            except Exception:
                logger.exception("subscriber failed for %s message", envelope.type)

    def _publish_tap(self, channel: _Channel, envelope: Envelope, raw: str) -> None:
        for handler in channel.snapshot():
            try:
                handler(envelope, raw)
            except Exception:
                logger.exception("tap failed for %s message", envelope.type)
