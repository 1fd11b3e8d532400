"""Transport layer implementations."""

from .base import (
    Transport,
    TransportError,
    TransportConnectionError,
    TransportPortError,
)

from ..config import ConfigurationError
from . import memory


backends = ("zmq", "memory")


def create(config, hub=None):
    """Return an unopened transport for the supplied
    :class:`citycomm.config.Configuration`. The memory backend attaches to
    *hub*, or to the process-wide default hub if none is specified.
    """

    if config.address is None:
        raise ConfigurationError("no address configured for this node")

    if config.transport == "zmq":
        from .zmq import Transport as ZmqTransport
        config.endpoint()
        return ZmqTransport(config.address, config.endpoints)

    if config.transport == "memory":
        if hub is None:
            hub = default_hub
        return memory.Transport(hub, config.address)

    raise ConfigurationError(f"unknown transport backend: {config.transport!r}")


default_hub = memory.Hub()
