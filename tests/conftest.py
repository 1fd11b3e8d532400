import threading

import pytest

import citycomm
from citycomm.transport import memory


@pytest.fixture
def hub():
    return memory.Hub()


def run_dispatcher(hub, address, family):

    transport = memory.Transport(hub, address)
    transport.open()

    dispatcher = citycomm.Dispatcher(transport, family)
    dispatcher.poll_interval = 0.01

    stop = threading.Event()
    thread = threading.Thread(target=dispatcher.run, args=(stop,))
    thread.daemon = True
    thread.start()

    return dispatcher, stop, thread


@pytest.fixture
def dispatcher(hub):
    """ A communication family dispatcher on address 1.
    """

    dispatcher, stop, thread = run_dispatcher(hub, 1, citycomm.protocol.family.communication)

    yield dispatcher

    stop.set()
    thread.join(1)
    dispatcher.transport.close()


@pytest.fixture
def alert_dispatcher(hub):
    """ An alert family dispatcher on address 2.
    """

    dispatcher, stop, thread = run_dispatcher(hub, 2, citycomm.protocol.family.alert)

    yield dispatcher

    stop.set()
    thread.join(1)
    dispatcher.transport.close()


@pytest.fixture
def correlator(hub):
    """ A communication family client on address 7.
    """

    transport = memory.Transport(hub, 7)
    transport.open()

    correlator = citycomm.Correlator(transport)
    correlator.poll_interval = 0.01

    yield correlator

    correlator.stop()
    transport.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
