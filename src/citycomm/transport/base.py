"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`citycomm.protocol` so the protocol remains
transport-agnostic. A transport moves JSON-compatible payloads between
numeric addresses; every payload is tagged with a topic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportPortError(TransportError):
    """No suitable endpoint could be bound or connected."""


class Transport(ABC):
    """Minimal contract for an addressable broadcast channel."""

    address: Optional[int] = None

    # Seconds to wait after open() before traffic is reliably delivered.
    settle: float = 0.0

    @abstractmethod
    def open(self) -> None:
        """Establish the underlying connection/socket."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @abstractmethod
    def send(self, address: int, payload: Any, topic: str) -> None:
        """Send *payload* to the peer at *address*, tagged with *topic*."""

    @abstractmethod
    def receive(self, topic: str, timeout: Optional[float] = None) -> Optional[Tuple[int, Any]]:
        """Wait for the next payload tagged with *topic*.

        Returns a (sender, payload) tuple, or None if *timeout* seconds
        elapsed first. A *timeout* of None waits indefinitely.
        """

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
