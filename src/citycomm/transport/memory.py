"""In-process transport.

A :class:`Hub` stands in for the shared broadcast medium; every
:class:`Transport` attached to the same hub can reach every other one.
Payloads are JSON encoded on the way through, as they would be on a real
wire. Delivery is immediate and in order, which makes this backend
convenient for tests and single-process simulations.
"""

from __future__ import annotations

import queue
import threading
from typing import Any, Dict, Optional, Tuple

from .. import json
from .base import Transport as BaseTransport
from .base import TransportConnectionError, TransportError, TransportPortError


class Hub:
    """The shared medium. Addresses must be unique per hub."""

    def __init__(self):
        self._members: Dict[int, "Transport"] = {}
        self._lock = threading.Lock()

    def attach(self, transport: "Transport") -> None:
        with self._lock:
            if transport.address in self._members:
                raise TransportPortError(f"address already in use: {transport.address}")
            self._members[transport.address] = transport

    def detach(self, transport: "Transport") -> None:
        with self._lock:
            if self._members.get(transport.address) is transport:
                del self._members[transport.address]

    def deliver(self, sender: int, address: int, data: bytes, topic: str) -> None:
        with self._lock:
            member = self._members.get(address)

        # Best-effort medium: a frame for an absent peer is simply lost.
        if member is not None:
            member._inbound(topic).put((sender, data))


class Transport(BaseTransport):
    """One node's attachment to a :class:`Hub`."""

    def __init__(self, hub: Hub, address: int):
        self.hub = hub
        self.address = int(address)
        self._queues: Dict[str, queue.Queue] = {}
        self._queues_lock = threading.Lock()
        self._open = False

    def _inbound(self, topic: str) -> queue.Queue:
        with self._queues_lock:
            q = self._queues.get(topic)
            if q is None:
                q = queue.Queue()
                self._queues[topic] = q
            return q

    def open(self) -> None:
        if self._open:
            return
        self.hub.attach(self)
        self._open = True

    def close(self) -> None:
        if not self._open:
            return
        self.hub.detach(self)
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, address: int, payload: Any, topic: str) -> None:
        if not self._open:
            raise TransportConnectionError("transport is not open")

        try:
            data = json.dumps(payload)
        except (TypeError, ValueError, json.EncodeError) as exc:
            raise TransportError(f"cannot encode payload for {topic}: {exc}") from exc

        self.hub.deliver(self.address, int(address), data, topic)

    def receive(self, topic: str, timeout: Optional[float] = None) -> Optional[Tuple[int, Any]]:
        if not self._open:
            raise TransportConnectionError("transport is not open")
        try:
            sender, data = self._inbound(topic).get(timeout=timeout)
        except queue.Empty:
            return None
        return sender, json.loads(data)
