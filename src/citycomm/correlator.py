""" Client-side request/response correlation. A :class:`Correlator` stamps
    each outgoing message with a locally unique identification number,
    keeps track of the requests still waiting for an answer, and hands each
    inbound response to the request it belongs to.

    Correlation is by sender address: the first response from the address
    a request was sent to, arriving before that request's deadline, is taken
    to be the answer. The response does not identify which request it
    answers, so with this default behavior a late reply to an earlier
    request can be accepted as the answer to a later one. Setting *strict*
    additionally requires the echoed ``reply_to`` id to match.
"""

import itertools
import math
import logging
import threading
import time

from . import history
from .config import ConfigurationError
from .protocol import family as familymodule
from .protocol import message as messagemodule
from .transport import TransportError


logger = logging.getLogger(__name__)


class PendingRequest:
    """ Sender-side bookkeeping for one outstanding message. The response,
        if any, is delivered via :func:`_complete`; callers block in
        :func:`wait`.
    """

    def __init__(self, id, destination, sent_at, deadline):

        self.id = id
        self.destination = destination
        self.sent_at = sent_at
        self.deadline = deadline
        self.response = None
        self.sender = None
        self.rep_event = threading.Event()


    def __repr__(self):
        return 'PendingRequest(id=%r, destination=%r, deadline=%r)' % (self.id, self.destination, self.deadline)


    def _complete(self, sender, response):
        """ Locally store the response and signal any callers blocking via
            :func:`wait` to proceed.
        """

        self.sender = sender
        self.response = response
        self.rep_event.set()


    def expired(self, now=None):
        if now is None:
            now = time.time()
        return now > self.deadline


    def wait(self, timeout):
        """ Block until the request has been answered, or until *timeout*
            seconds elapse. The response is always returned; it will be None
            if the request is still pending.
        """

        self.rep_event.wait(timeout)
        return self.response


# end of class PendingRequest



class Correlator:
    """ Issue messages on the request topic of a message *family* and
        correlate the responses arriving on its response topic. The
        *transport* must be opened by the caller.

        Responses are collected by a single background listener thread,
        started on first use, which routes each one to the oldest matching
        :class:`PendingRequest`. Any number of threads may call :func:`send`
        concurrently; each call waits independently.

        :ivar sent: :class:`citycomm.history.History` of :class:`citycomm.history.Sent` records.
        :ivar received: :class:`citycomm.history.History` of :class:`citycomm.history.Received` records.
    """

    default_timeout = 10
    poll_interval = 0.1

    def __init__(self, transport, family=familymodule.communication, timeout=None, strict=False):

        if timeout is None:
            timeout = self.default_timeout

        self.transport = transport
        self.family = family
        self.timeout = _validate_timeout(timeout)
        self.strict = strict

        self.lock = threading.RLock()
        self.sent = history.History()
        self.received = history.History()

        self._ids = itertools.count(1)
        self._pending = dict()

        self.shutdown = False
        self.thread = None


    @property
    def address(self):
        return self.transport.address


    def build_message(self, type, content=None, **extras):
        """ Construct a :class:`citycomm.protocol.message.Message` classified
            against this family's registry. See
            :func:`citycomm.protocol.message.build` for the arguments.
        """

        return messagemodule.build(type, content, registry=self.family.registry, **extras)


    def send(self, destination, message, timeout=None):
        """ Send the *message* to the node at *destination* and wait up to
            *timeout* seconds for its response. Returns a (delivered,
            response) tuple; on timeout, or if the transport could not send
            the message, the tuple is (False, None). No retry is attempted.
            A response from any address other than *destination* does not
            end the wait early; it is discarded, and the call still waits out
            the full *timeout*.

            A *timeout* that is not positive is rejected with a
            :class:`citycomm.config.ConfigurationError` before anything
            goes out on the network.
        """

        if timeout is None:
            timeout = self.timeout

        timeout = _validate_timeout(timeout)
        destination = int(destination)

        with self.lock:
            id = next(self._ids)
            now = time.time()
            message.stamp(self.address, id, now)

            pending = PendingRequest(id, destination, now, now + timeout)
            record = history.Sent(id, destination, now, pending.deadline, message)

            self.sent.append(record)
            self._pending[id] = pending

        self.start()

        logger.info("sending message #%d (%s) to %d", id, message.type, destination)

        try:
            try:
                self.transport.send(destination, message.to_dict(), self.family.request_topic)
            except TransportError as e:
                logger.warning("message #%d to %d not sent: %s", id, destination, str(e))
                return False, None

            response = pending.wait(timeout)
        finally:
            self._discard(pending)

        if response is None:
            logger.info("no response to message #%d within %.2f seconds", id, timeout)
            return False, None

        record = history.Received(id, pending.sender, time.time(), response)
        self.received.append(record)

        logger.info("response to message #%d from %d: %s", id, pending.sender, response.message)
        return True, response


    def test_connection(self, destination, timeout=5):
        """ Send a status request flagged as a connection test. Returns the
            same tuple as :func:`send`.
        """

        content = 'Connection test from client ' + str(self.address)
        message = self.build_message('STATUS_REQUEST', content, test_mode=True)
        return self.send(destination, message, timeout)


    def pending(self):
        """ Return a list of the requests still awaiting a response.
        """

        with self.lock:
            return list(self._pending.values())


    def recent_sent(self, count):
        return self.sent.recent(count)


    def recent_received(self, count):
        return self.received.recent(count)


    def start(self):
        """ Start the background listener, if it is not already running.
        """

        with self.lock:
            if self.thread is not None:
                return

            self.shutdown = False
            self.thread = threading.Thread(target=self.run)
            self.thread.daemon = True
            self.thread.start()


    def stop(self):

        with self.lock:
            thread = self.thread
            self.thread = None
            self.shutdown = True

        if thread is not None:
            thread.join(self.poll_interval * 5)


    def run(self):

        topic = self.family.response_topic

        while self.shutdown == False:
            try:
                received = self.transport.receive(topic, self.poll_interval)
            except TransportError:
                logger.exception("error receiving on %s", topic)
                time.sleep(self.poll_interval)
                continue

            if received is None:
                self._expire()
                continue

            sender, payload = received
            self._rep_incoming(sender, payload)


    def _rep_incoming(self, sender, payload):
        """ Match one inbound response to the request it answers. Anything
            that does not parse as a response, or matches no outstanding
            request, is discarded.
        """

        try:
            response = messagemodule.Response.from_dict(payload)
        except ValueError as e:
            logger.warning("discarding malformed response from %s: %s", sender, str(e))
            return

        now = time.time()

        with self.lock:
            pending = self._match(sender, response, now)
            if pending is not None:
                del self._pending[pending.id]

        if pending is None:
            logger.debug("discarding unmatched response from %s: %r", sender, response)
            return

        pending._complete(sender, response)


    def _match(self, sender, response, now):

        # Dictionaries retain insertion order, so this is oldest first.

        for pending in self._pending.values():
            if pending.destination != sender:
                continue
            if pending.expired(now):
                continue
            if self.strict and response.reply_to != pending.id:
                continue
            return pending

        return None


    def _discard(self, pending):
        with self.lock:
            self._pending.pop(pending.id, None)


    def _expire(self):
        now = time.time()

        with self.lock:
            for pending in list(self._pending.values()):
                if pending.expired(now):
                    del self._pending[pending.id]


# end of class Correlator



def _validate_timeout(timeout):

    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        raise ConfigurationError('timeout must be a number, not ' + repr(timeout))

    # NaN compares false against everything.

    if not timeout > 0 or math.isinf(timeout):
        raise ConfigurationError('timeout must be a positive finite number, not ' + str(timeout))

    return timeout


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
