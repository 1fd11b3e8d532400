"""ZeroMQ backend: a broker-less PUB/SUB broadcast bus."""

from .bus import Transport
