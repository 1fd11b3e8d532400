import pytest

from citycomm.transport import TransportConnectionError, TransportError, TransportPortError
from citycomm.transport import memory


def test_send_receive(hub):

    first = memory.Transport(hub, 1)
    second = memory.Transport(hub, 2)

    with first, second:
        first.send(2, {'type': 'GENERAL', 'content': 'hello'}, 'city_comm')

        assert second.receive('city_comm', 1) == (1, {'type': 'GENERAL', 'content': 'hello'})
        assert second.receive('city_response', 0.01) is None

        # Nobody is listening on address 3; the frame is lost.

        first.send(3, 'into the void', 'city_comm')

    assert first.is_open == False


def test_unencodable(hub):

    with memory.Transport(hub, 1) as transport:
        with pytest.raises(TransportError):
            transport.send(2, {'attachment': object()}, 'city_comm')


def test_closed(hub):

    transport = memory.Transport(hub, 1)

    with pytest.raises(TransportConnectionError):
        transport.send(2, 'hello', 'city_comm')

    with pytest.raises(TransportConnectionError):
        transport.receive('city_comm', 0.01)


def test_duplicate_address(hub):

    with memory.Transport(hub, 1):
        with pytest.raises(TransportPortError):
            memory.Transport(hub, 1).open()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
