import io
import threading
import time

import pytest

import citycomm
from citycomm.protocol import fields


class Silent:
    """ A console input stream that never produces a line until released.
    """

    def __init__(self):
        self.released = threading.Event()

    def readline(self):
        self.released.wait()
        return ''


def configure(tmp_path, address):
    return citycomm.Configuration(tmp_path, address=address, transport='memory', poll_interval=0.01)


def test_console_shutdown(tmp_path, hub):

    node = citycomm.Node(configure(tmp_path, 1), hub=hub)

    stream = io.StringIO('status\nbogus\nmessages\nshutdown\nstatus\n')
    output = io.StringIO()

    node.run(stream, output)

    text = output.getvalue()
    assert 'SYSTEM STATUS REPORT' in text
    assert 'Available commands: status, messages, clear, shutdown' in text
    assert 'No messages received' in text
    assert 'Shutting down server...' in text
    assert text.count('SYSTEM STATUS REPORT') == 1

    assert node.stop.is_set()
    assert node.transport.is_open == False


def test_console_end_of_input(tmp_path, hub):

    node = citycomm.Node(configure(tmp_path, 1), hub=hub)
    node.run(io.StringIO(''), io.StringIO())

    assert node.transport.is_open == False


def test_shutdown(tmp_path, hub):
    """ The node stops even while the console is blocked reading input.
    """

    node = citycomm.Node(configure(tmp_path, 1), hub=hub)
    node.join_timeout = 0.1

    stream = Silent()
    timer = threading.Timer(0.1, node.shutdown)
    timer.start()

    begin = time.time()
    node.run(stream, io.StringIO())
    elapsed = time.time() - begin

    stream.released.set()
    timer.join()

    assert elapsed < 2
    assert node.transport.is_open == False


def test_serve_and_request(tmp_path, hub):

    node = citycomm.Node(configure(tmp_path, 1), hub=hub)

    thread = threading.Thread(target=node.run, kwargs=dict(console=False))
    thread.daemon = True
    thread.start()

    # Wait for the node to attach to the hub.

    for attempt in range(100):
        if node.transport.is_open:
            break
        time.sleep(0.01)

    correlator = citycomm.client(configure(tmp_path, 7), hub=hub)

    try:
        message = correlator.build_message('DATA_QUERY', 'sensor readings', query_details={'sensor': 4})
        delivered, response = correlator.send(1, message, 2)
    finally:
        correlator.stop()
        correlator.transport.close()
        node.shutdown()
        thread.join(2)

    assert delivered == True
    assert response.get(fields.QUERY_RESULT)['total_messages'] == 1

    records = node.session.received.recent(5)
    assert len(records) == 1
    assert records[0].type == 'DATA_QUERY'
    assert records[0].sender == 7
    assert records[0].message.extras['query_details'] == {'sensor': 4}

    assert node.session.responses_sent == 1
    assert thread.is_alive() == False


def test_alert_node(tmp_path, hub):

    node = citycomm.Node(configure(tmp_path, 2), citycomm.protocol.family.alert, hub=hub)
    assert node.family.request_topic == 'city_alert'
    assert node.dispatcher.family is citycomm.protocol.family.alert


def test_refuses_to_start(tmp_path, hub):

    configuration = citycomm.Configuration(tmp_path, transport='memory')
    with pytest.raises(citycomm.ConfigurationError):
        citycomm.Node(configuration, hub=hub)

    configuration = citycomm.Configuration(tmp_path, address=1, transport='zmq')
    with pytest.raises(citycomm.ConfigurationError):
        citycomm.Node(configuration, hub=hub)

    configuration = citycomm.Configuration(tmp_path, address=1, transport='pigeon')
    with pytest.raises(citycomm.ConfigurationError):
        citycomm.Node(configuration, hub=hub)

    configuration = citycomm.Configuration(tmp_path, address=1, transport='memory', timeout=-5)
    with pytest.raises(citycomm.ConfigurationError):
        citycomm.client(configuration, hub=hub)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
