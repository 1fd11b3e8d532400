"""ZeroMQ broadcast bus.

Each node binds one PUB socket on its own endpoint and connects one SUB
socket to the endpoint of every peer, subscribed to everything. Every frame
therefore reaches every node, the way a shared radio medium would; frames
not addressed to this node are discarded on arrival. Inbound frames are
demultiplexed into one queue per topic so that independent receivers never
steal each other's traffic.

All socket access happens on a single background thread. Sends from other
threads go through an outbox queue plus an inproc PAIR signal socket.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Dict, Optional, Tuple

import zmq

from ... import json
from ..base import Transport as BaseTransport
from ..base import TransportConnectionError, TransportError, TransportPortError
from .framing import from_frames, to_frames


logger = logging.getLogger(__name__)
zmq_context = zmq.Context()


class Transport(BaseTransport):
    """One node's attachment to the bus.

    *endpoints* maps every numeric address on the bus to its ZeroMQ
    endpoint, for example ``tcp://10.0.0.5:10140``; it must include this
    node's own *address*.
    """

    poll_interval = 100

    # Subscriptions take a moment to propagate; anything published before
    # then is lost, as on any best-effort medium.
    settle = 0.5

    def __init__(self, address: int, endpoints: Dict[int, str], context: Optional[zmq.Context] = None):
        self.address = int(address)
        self.endpoints = dict((int(k), v) for k, v in endpoints.items())
        self.context = context or zmq_context

        try:
            self.endpoint = self.endpoints[self.address]
        except KeyError:
            raise TransportConnectionError(f"no endpoint for local address {self.address}")

        self._queues: Dict[str, queue.Queue] = {}
        self._queues_lock = threading.Lock()
        self._outbox: queue.SimpleQueue = queue.SimpleQueue()
        self._signal_lock = threading.Lock()

        self.pub = None
        self.sub = None
        self.thread = None
        self.shutdown = False

    def _inbound(self, topic: str) -> queue.Queue:
        with self._queues_lock:
            q = self._queues.get(topic)
            if q is None:
                q = queue.Queue()
                self._queues[topic] = q
            return q

    def open(self) -> None:
        if self.thread is not None:
            return

        self.pub = self.context.socket(zmq.PUB)
        self.pub.setsockopt(zmq.LINGER, 0)

        try:
            self.pub.bind(self.endpoint)
        except zmq.ZMQError as exc:
            self.pub.close()
            self.pub = None
            raise TransportPortError(f"cannot bind {self.endpoint}: {exc}") from exc

        self.sub = self.context.socket(zmq.SUB)
        self.sub.setsockopt(zmq.LINGER, 0)
        self.sub.setsockopt(zmq.SUBSCRIBE, b"")

        for address, endpoint in self.endpoints.items():
            if address == self.address:
                continue
            self.sub.connect(endpoint)

        internal = f"inproc://citycomm.bus:signal:{id(self)}"
        self._signal_rx = self.context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = self.context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()
        logger.debug("bus node %d on the air at %s", self.address, self.endpoint)

    def close(self) -> None:
        if self.thread is None:
            return

        self.shutdown = True
        self._signal()
        self.thread.join(2)
        self.thread = None

        with self._signal_lock:
            self._signal_tx.close()
        self._signal_rx.close()

    @property
    def is_open(self) -> bool:
        return self.thread is not None and not self.shutdown

    def _signal(self) -> None:
        with self._signal_lock:
            self._signal_tx.send(b"")

    def send(self, address: int, payload: Any, topic: str) -> None:
        if not self.is_open:
            raise TransportConnectionError("transport is not open")

        address = int(address)

        try:
            frames = to_frames(topic, self.address, address, payload)
        except (TypeError, ValueError, json.EncodeError) as exc:
            raise TransportError(f"cannot encode payload for {topic}: {exc}") from exc

        # Loopback; a PUB socket never hears itself.
        if address == self.address:
            self._inbound(topic).put((self.address, json.loads(frames[-1])))
            return

        self._outbox.put(frames)
        self._signal()

    def receive(self, topic: str, timeout: Optional[float] = None) -> Optional[Tuple[int, Any]]:
        if self.thread is None:
            raise TransportConnectionError("transport is not open")
        try:
            return self._inbound(topic).get(timeout=timeout)
        except queue.Empty:
            return None

    # --- internal ---
    def _send_one(self) -> None:
        self._signal_rx.recv(flags=zmq.NOBLOCK)
        try:
            frames = self._outbox.get(block=False)
        except queue.Empty:
            return
        self.pub.send_multipart(frames)

    def _receive_one(self) -> None:
        parts = self.sub.recv_multipart()

        try:
            topic, sender, destination, payload = from_frames(parts)
        except ValueError as exc:
            logger.warning("bus node %d discarding frame: %s", self.address, exc)
            return

        if destination != self.address:
            return

        self._inbound(topic).put((sender, payload))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.sub, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(self.poll_interval):
                try:
                    if active == self._signal_rx:
                        self._send_one()
                    elif active == self.sub:
                        self._receive_one()
                except zmq.ZMQError:
                    logger.exception("bus node %d socket error", self.address)

        self.sub.close()
        self.pub.close()

