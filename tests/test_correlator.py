import threading
import time

import pytest

import citycomm
from citycomm.protocol import fields
from citycomm.transport import memory
from citycomm.transport.base import Transport, TransportConnectionError


class Recording(Transport):
    """ A transport that records every call and never delivers anything.
    """

    address = 7

    def __init__(self, fail=False):
        self.sent = list()
        self.fail = fail

    def open(self):
        pass

    def close(self):
        pass

    def send(self, address, payload, topic):
        if self.fail:
            raise TransportConnectionError('unplugged')
        self.sent.append((address, payload, topic))

    def receive(self, topic, timeout=None):
        time.sleep(timeout)
        return None


def test_round_trip(dispatcher, correlator):

    message = correlator.build_message('EMERGENCY', 'Fire in sector 7')
    delivered, response = correlator.send(1, message, 2)

    assert delivered == True
    assert response.status == 'RECEIVED'
    assert response.message == 'Emergency alert received. Response team has been notified.'
    assert response.get(fields.EMERGENCY_RESPONSE)['alert_level'] == 'HIGH'
    assert response.get(fields.EMERGENCY_RESPONSE)['response_team_notified'] == True

    assert message.id == 1
    assert message.sender == 7

    sent = correlator.recent_sent(5)
    assert len(sent) == 1
    assert sent[0].id == 1
    assert sent[0].destination == 1
    assert sent[0].message is message

    received = correlator.recent_received(5)
    assert len(received) == 1
    assert received[0].id == 1
    assert received[0].sender == 1
    assert received[0].response is response

    assert correlator.pending() == []


def test_status_request_twice(dispatcher, correlator):

    ids = list()
    processed = list()

    for attempt in range(2):
        message = correlator.build_message('STATUS_REQUEST', 'Status check')
        delivered, response = correlator.send(1, message, 2)
        assert delivered == True
        ids.append(response.original_message_id)
        processed.append(response.get(fields.SERVER_STATUS)['messages_processed'])

    assert ids[1] > ids[0]
    assert processed[1] == processed[0] + 1


def test_unknown_type(dispatcher, correlator):

    message = citycomm.protocol.Message('unknown_tag', 'mystery')
    delivered, response = correlator.send(1, message, 2)

    assert delivered == True
    assert response.message == 'Message received and logged.'
    assert response.block is None


def test_local_ids(dispatcher, correlator):

    for expected in (1, 2, 3):
        message = correlator.build_message('GENERAL', 'hello')
        correlator.send(1, message, 2)
        assert message.id == expected

    # Clearing the dispatcher has no effect on the client's numbering.

    dispatcher.session.clear()

    message = correlator.build_message('GENERAL', 'hello')
    delivered, response = correlator.send(1, message, 2)
    assert message.id == 4
    assert response.original_message_id == 1


def test_invalid_timeout():

    transport = Recording()
    correlator = citycomm.Correlator(transport)

    for timeout in (0, -1, -0.5, 'soon', float('nan'), 'nan', float('inf')):
        message = correlator.build_message('GENERAL', 'hello')
        with pytest.raises(citycomm.ConfigurationError):
            correlator.send(1, message, timeout)

    assert transport.sent == []
    assert len(correlator.sent) == 0

    with pytest.raises(citycomm.ConfigurationError):
        citycomm.Correlator(transport, timeout=0)


def test_timeout():

    transport = Recording()
    correlator = citycomm.Correlator(transport)
    correlator.poll_interval = 0.01

    timeout = 0.2
    message = correlator.build_message('GENERAL', 'anyone there?')

    begin = time.time()
    delivered, response = correlator.send(1, message, timeout)
    elapsed = time.time() - begin

    correlator.stop()

    assert delivered == False
    assert response is None
    assert elapsed >= timeout - 0.005
    assert elapsed < timeout + 0.1

    # The attempt is logged even though it failed, and nothing is pending.

    assert len(transport.sent) == 1
    assert transport.sent[0][2] == 'city_comm'
    assert len(correlator.sent) == 1
    assert len(correlator.received) == 0
    assert correlator.pending() == []


def test_default_timeout():

    correlator = citycomm.Correlator(Recording())
    assert correlator.timeout == 10


def test_send_failure():

    transport = Recording(fail=True)
    correlator = citycomm.Correlator(transport)
    correlator.poll_interval = 0.01

    message = correlator.build_message('GENERAL', 'hello')

    begin = time.time()
    delivered, response = correlator.send(1, message, 5)
    elapsed = time.time() - begin

    correlator.stop()

    assert delivered == False
    assert response is None
    assert elapsed < 1
    assert len(correlator.sent) == 1
    assert correlator.pending() == []


def test_unencodable_message(hub):
    """ A payload the wire format cannot carry is a send failure, not an
        exception, and leaves nothing pending.
    """

    client = memory.Transport(hub, 7)
    client.open()

    correlator = citycomm.Correlator(client)
    correlator.poll_interval = 0.01

    message = correlator.build_message('GENERAL', 'hello', attachment=object())

    begin = time.time()
    delivered, response = correlator.send(1, message, 2)
    elapsed = time.time() - begin

    correlator.stop()
    client.close()

    assert delivered == False
    assert response is None
    assert elapsed < 1
    assert correlator.pending() == []
    assert len(correlator.sent) == 1
    assert len(correlator.received) == 0


def test_wrong_sender(hub, correlator):
    """ A response from some other address does not satisfy the request.
    """

    impostor = memory.Transport(hub, 3)
    impostor.open()

    def reply():
        impostor.send(7, {'type': 'RESPONSE', 'original_message_id': 1, 'server_id': 3}, 'city_response')

    timer = threading.Timer(0.05, reply)
    timer.start()

    message = correlator.build_message('GENERAL', 'hello')

    begin = time.time()
    delivered, response = correlator.send(1, message, 0.3)
    elapsed = time.time() - begin

    timer.join()
    impostor.close()

    assert delivered == False
    assert response is None

    # The stray response does not cut the wait short.

    assert elapsed >= 0.3 - 0.005
    assert correlator.pending() == []


def stale_reply_scenario(hub, strict):
    """ A request to a silent server times out; the server then answers
        both the stale request and a new one. Returns the response the
        second request receives.
    """

    server = memory.Transport(hub, 1)
    server.open()

    client = memory.Transport(hub, 7)
    client.open()

    correlator = citycomm.Correlator(client, strict=strict)
    correlator.poll_interval = 0.01

    first = correlator.build_message('GENERAL', 'first')
    delivered, response = correlator.send(1, first, 0.05)
    assert delivered == False

    def answer():
        for attempt in range(2):
            sender, payload = server.receive('city_comm', 2)

        stale = citycomm.protocol.Response('RESPONSE', 1, 1, 'stale', reply_to=1)
        fresh = citycomm.protocol.Response('RESPONSE', 2, 1, 'fresh', reply_to=2)
        server.send(7, stale.to_dict(), 'city_response')
        server.send(7, fresh.to_dict(), 'city_response')

    thread = threading.Thread(target=answer)
    thread.start()

    second = correlator.build_message('GENERAL', 'second')
    delivered, response = correlator.send(1, second, 2)

    thread.join()
    correlator.stop()
    server.close()
    client.close()

    assert delivered == True
    return response


def test_address_only_correlation(hub):
    """ By default the first reply from the right address wins, even if it
        was meant for an earlier request.
    """

    response = stale_reply_scenario(hub, strict=False)
    assert response.message == 'stale'
    assert response.reply_to == 1


def test_strict_correlation(hub):

    response = stale_reply_scenario(hub, strict=True)
    assert response.message == 'fresh'
    assert response.reply_to == 2


def test_concurrent_sends(hub, dispatcher):
    """ Outstanding requests wait independently; neither blocks the other.
    """

    second = memory.Transport(hub, 2)
    second.open()
    peer = citycomm.Dispatcher(second)
    peer.poll_interval = 0.01

    stop = threading.Event()
    listener = threading.Thread(target=peer.run, args=(stop,))
    listener.daemon = True
    listener.start()

    client = memory.Transport(hub, 7)
    client.open()
    correlator = citycomm.Correlator(client)
    correlator.poll_interval = 0.01

    results = dict()

    def send(destination):
        message = correlator.build_message('STATUS_REQUEST', 'from thread')
        results[destination] = correlator.send(destination, message, 2)

    threads = [threading.Thread(target=send, args=(destination,)) for destination in (1, 2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    correlator.stop()
    client.close()

    stop.set()
    listener.join(1)
    second.close()

    for destination in (1, 2):
        delivered, response = results[destination]
        assert delivered == True
        assert response.server_id == destination

    ids = sorted(record.id for record in correlator.recent_sent(5))
    assert ids == [1, 2]


def test_alert_round_trip(hub, alert_dispatcher):

    client = memory.Transport(hub, 7)
    client.open()
    correlator = citycomm.Correlator(client, citycomm.protocol.family.alert)
    correlator.poll_interval = 0.01

    message = correlator.build_message('ALERT', 'SECURITY ALERT', priority='HIGH', duration=600, station='Alpha')
    delivered, response = correlator.send(2, message, 2)

    assert delivered == True
    assert response.type == 'confirmation'
    assert response.get(fields.ALERT_CONFIRMATION)['alert_priority'] == 'HIGH'
    assert response.get(fields.ALERT_CONFIRMATION)['active_alerts'] == 1

    delivered, response = correlator.test_connection(2)
    assert delivered == True
    assert response.type == 'status_response'
    assert response.get(fields.SYSTEM_STATUS)['active_alerts'] == 1

    record = alert_dispatcher.session.received.recent(1)[0]
    assert record.message.extras['test_mode'] == True

    correlator.stop()
    client.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
