""" Server-side message handling. A :class:`Dispatcher` consumes inbound
    messages on the request topic of its message family, classifies each
    one, and sends back a :class:`citycomm.protocol.message.Response`
    carrying the registry's auto-response text and the type-specific
    enrichment block.
"""

import logging
import time

from . import history
from .protocol import family as familymodule
from .protocol import message as messagemodule
from .transport import TransportError


logger = logging.getLogger(__name__)


class Dispatcher:
    """ Process inbound messages for one message *family* on the supplied
        *transport*. The transport must be opened by the caller. All logs
        and counters live in the :class:`citycomm.history.ServerSession`
        held in *session*; each dispatcher gets its own unless one is
        provided.
    """

    poll_interval = 0.1
    report_every = 10

    def __init__(self, transport, family=familymodule.communication, session=None):

        if session is None:
            session = history.ServerSession()

        self.transport = transport
        self.family = family
        self.session = session


    @property
    def address(self):
        return self.transport.address


    def process(self, sender, payload):
        """ Classify the inbound *payload* from *sender*, record it, and
            return a (response, requires_ack) tuple: the
            :class:`citycomm.protocol.message.Response` that should be sent
            back, and whether the message type asks for acknowledgment.
            Nothing is transmitted. A payload of any shape is accepted;
            anything unrecognized is handled as the fallback type.
        """

        registry = self.family.registry
        now = time.time()

        message = messagemodule.Message.from_dict(payload, registry)
        entry = registry.classify(message.type)

        # The processed count doubles as the response's message id; it
        # reflects dispatcher-side ordering, not the sender's own numbering.

        with self.session.lock:
            id = self.session.next_id()
            record = history.Processed(id, sender, now, message.type, message.priority, entry.log_level, message)
            self.session.received.append(record)

            block, enrichment = self.family.enrich(message, self.session, now)

        level = registry.log_level(message.type)
        logger.log(level, "message #%d from %s: %s (priority %s) %r", id, sender, message.type, message.priority, message.content)

        response = messagemodule.Response(
            self.family.response_type(message.type),
            id,
            self.address,
            entry.auto_response,
            timestamp=now,
            reply_to=message.id,
            block=block,
            enrichment=enrichment)

        return response, entry.requires_ack


    def respond(self, sender, response, requires_ack=False):
        """ Transmit the *response* to *sender* on the response topic and
            record it. Returns False if the transport could not send it;
            nothing is recorded in that case.
        """

        try:
            self.transport.send(sender, response.to_dict(), self.family.response_topic)
        except TransportError as e:
            logger.error("response #%s to %s not sent: %s", response.original_message_id, sender, str(e))
            return False

        record = history.Replied(sender, time.time(), response)
        self.session.replied(record)

        logger.debug("response #%s sent to %s", response.original_message_id, sender)

        # Acknowledgment is informational only, nothing waits for one.

        if requires_ack:
            logger.info("response #%s to %s requires acknowledgment", response.original_message_id, sender)

        return True


    def handle(self, sender, payload):
        """ Process one inbound message and send the response. Returns the
            response, or None if the message could not be handled at all.
        """

        try:
            response, requires_ack = self.process(sender, payload)
        except Exception:
            logger.exception("unable to process message from %s", sender)
            return None

        self.respond(sender, response, requires_ack)

        if response.original_message_id % self.report_every == 0:
            self.report()

        return response


    def report(self):
        """ Log a summary of the session counters.
        """

        status = self.session.snapshot()
        logger.info("status: uptime %d minutes, %d messages processed, %d responses sent",
                    int(status.uptime / 60), status.messages_processed, status.responses_sent)
        return status


    def run(self, stop):
        """ Handle inbound messages until the *stop* event is set. The wait
            for each message is unbounded from the point of view of the
            caller; internally it wakes up every :attr:`poll_interval`
            seconds to check whether it should stop.
        """

        topic = self.family.request_topic
        logger.info("dispatcher %s listening on %s", self.address, topic)

        while stop.is_set() == False:
            try:
                received = self.transport.receive(topic, self.poll_interval)
            except TransportError:
                logger.exception("error receiving on %s", topic)
                stop.wait(self.poll_interval)
                continue

            if received is None:
                continue

            sender, payload = received
            self.handle(sender, payload)

        logger.info("dispatcher %s stopped", self.address)


# end of class Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
