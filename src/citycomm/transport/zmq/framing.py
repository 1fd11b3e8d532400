"""ZMQ multipart framing for the broadcast bus.

Every frame published on the bus has the same shape:
    topic_with_trailing_dot, version, sender, destination, payload_json
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

from ... import json


PROTOCOL_VERSION = b"1"


def to_frames(topic: str, sender: int, destination: int, payload: Any) -> Tuple[bytes, ...]:
    """Encode one addressed payload for a PUB socket."""

    # Trailing dot prevents leading substring matches between topics.
    topic_b = (topic + ".").encode()
    sender_b = str(int(sender)).encode()
    destination_b = str(int(destination)).encode()
    return (topic_b, PROTOCOL_VERSION, sender_b, destination_b, json.dumps(payload))


def from_frames(parts: Sequence[bytes]) -> Tuple[str, int, int, Any]:
    """Decode SUB parts into (topic, sender, destination, payload).

    Raises ValueError for anything that is not a well-formed frame of the
    expected protocol version.
    """

    if len(parts) != 5:
        raise ValueError(f"expected 5 frames, received {len(parts)}")

    topic_b, their_version, sender_b, destination_b, payload_b = parts

    if their_version != PROTOCOL_VERSION:
        raise ValueError(
            f"message is protocol {their_version!r}, recipient expects {PROTOCOL_VERSION!r}"
        )

    topic = topic_b.decode()
    if topic.endswith("."):
        topic = topic[:-1]

    sender = int(sender_b)
    destination = int(destination_b)

    try:
        payload = json.loads(payload_b)
    except json.DecodeError as exc:
        raise ValueError(f"undecodable payload: {exc}") from exc

    return topic, sender, destination, payload
