""" Class representations of the two things that travel over the network:
    a :class:`Message` sent by a client, and the :class:`Response` a
    dispatcher sends back.
"""

import time as timemodule

from .. import registry as registrymodule
from . import fields


class Message:
    """ The :class:`Message` is the unit a client sends to a dispatcher.
        The *type* is the message type tag, the *content* is free-form and
        owned by the sender. The *sender*, *id*, and *sent_at* fields are
        left as None until the message is stamped by a
        :class:`citycomm.correlator.Correlator` at send time.

        Any additional keyword arguments are type-specific extension fields,
        such as *duration* for an alert or *query_details* for a data query;
        they are carried flat in the wire representation.

        :ivar priority: Numeric priority, higher is more urgent.
        :ivar requires_ack: Informational; no acknowledgment is enforced.
        :ivar extras: Dictionary of extension fields.
    """

    def __init__(self, type, content=None, priority=None, requires_ack=False, sender=None, id=None, sent_at=None, **extras):

        self.type = type
        self.content = content
        self.priority = priority
        self.requires_ack = requires_ack
        self.sender = sender
        self.id = id
        self.sent_at = sent_at
        self.extras = extras


    def __repr__(self):
        return 'Message(%r, %r, priority=%r, id=%r)' % (self.type, self.content, self.priority, self.id)


    def stamp(self, sender, id, sent_at=None):
        """ Fill in the fields that identify this particular transmission.
        """

        if sent_at is None:
            sent_at = timemodule.time()

        self.sender = sender
        self.id = id
        self.sent_at = sent_at


    def to_dict(self):
        """ Return the wire representation of this message as a dictionary.
            Fields that are not set are omitted.
        """

        payload = dict(self.extras)

        payload[fields.TYPE] = self.type
        payload[fields.PRIORITY] = self.priority
        payload[fields.REQUIRES_ACK] = self.requires_ack

        if self.content is not None:
            payload[fields.CONTENT] = self.content
        if self.sender is not None:
            payload[fields.CLIENT_ID] = self.sender
        if self.id is not None:
            payload[fields.CLIENT_MESSAGE_ID] = self.id
        if self.sent_at is not None:
            payload[fields.SENT_AT] = self.sent_at

        return payload


    @classmethod
    def from_dict(cls, payload, registry=registrymodule.communication):
        """ Interpret an inbound *payload* as a :class:`Message`. This never
            raises: a payload that is not a dictionary is treated as the
            content of a fallback-type message, and the type and priority
            are always derived from the *registry*, unless the sender
            provided a usable priority of its own.
        """

        if isinstance(payload, dict):
            payload = dict(payload)
        else:
            payload = {fields.CONTENT: payload}

        tag = payload.pop(fields.TYPE, None)
        tag = registry.normalize(tag)
        entry = registry.classify(tag)

        priority = registrymodule.priority_value(payload.pop(fields.PRIORITY, None))
        if priority is None:
            priority = entry.priority

        payload.pop(fields.REQUIRES_ACK, None)

        content = payload.pop(fields.CONTENT, None)
        sender = payload.pop(fields.CLIENT_ID, None)
        id = payload.pop(fields.CLIENT_MESSAGE_ID, None)
        sent_at = payload.pop(fields.SENT_AT, None)

        message = cls(tag, content, priority, entry.requires_ack, sender, id, sent_at)
        message.extras = dict((str(key), value) for key,value in payload.items())
        return message


# end of class Message



class Response:
    """ The reply a dispatcher generates for each inbound :class:`Message`.
        At most one enrichment block is attached, its name and contents are
        held in *block* and *enrichment*, respectively.

        Note that *original_message_id* is the dispatcher's own processing
        count, not the id the sender stamped on its message; the sender's
        id is echoed back separately as *reply_to*.
    """

    def __init__(self, type, original_message_id, server_id, message, status=fields.RECEIVED, timestamp=None, reply_to=None, block=None, enrichment=None):

        if timestamp is None:
            timestamp = timemodule.time()

        if block is not None and block not in fields.BLOCKS:
            raise ValueError('invalid enrichment block: ' + repr(block))

        self.type = type
        self.original_message_id = original_message_id
        self.server_id = server_id
        self.message = message
        self.status = status
        self.timestamp = timestamp
        self.reply_to = reply_to
        self.block = block
        self.enrichment = enrichment


    def __repr__(self):
        return 'Response(%r, original_message_id=%r, server_id=%r, block=%r)' % (self.type, self.original_message_id, self.server_id, self.block)


    def get(self, block):
        """ Return the enrichment dictionary if it is the named *block*,
            otherwise return None.
        """

        if block == self.block:
            return self.enrichment
        return None


    def to_dict(self):

        payload = dict()
        payload[fields.TYPE] = self.type
        payload[fields.ORIGINAL_MESSAGE_ID] = self.original_message_id
        payload[fields.SERVER_ID] = self.server_id
        payload[fields.TIMESTAMP] = self.timestamp
        payload[fields.STATUS] = self.status
        payload[fields.MESSAGE] = self.message

        if self.reply_to is not None:
            payload[fields.REPLY_TO] = self.reply_to

        if self.block is not None:
            payload[self.block] = self.enrichment

        return payload


    @classmethod
    def from_dict(cls, payload):
        """ Interpret an inbound *payload* as a :class:`Response`. Raises
            ValueError if the payload is not a dictionary or is missing
            the fields every response carries.
        """

        if isinstance(payload, dict):
            pass
        else:
            raise ValueError('response payload must be a dictionary, not ' + type(payload).__name__)

        try:
            tag = payload[fields.TYPE]
            original = payload[fields.ORIGINAL_MESSAGE_ID]
            server_id = payload[fields.SERVER_ID]
        except KeyError as e:
            raise ValueError('response payload is missing ' + str(e))

        block = None
        enrichment = None

        for name in fields.BLOCKS:
            if name in payload:
                block = name
                enrichment = payload[name]
                break

        return cls(tag, original, server_id,
                   message=payload.get(fields.MESSAGE),
                   status=payload.get(fields.STATUS),
                   timestamp=payload.get(fields.TIMESTAMP),
                   reply_to=payload.get(fields.REPLY_TO),
                   block=block, enrichment=enrichment)


# end of class Response



def build(type, content=None, registry=registrymodule.communication, priority=None, require_content=False, **extras):
    """ Construct a new :class:`Message` of the specified *type*. The type
        is normalized and classified against the *registry*; the priority
        is taken from the registry entry unless *priority* is given, either
        as a number or as a named level such as 'CRITICAL'.

        If *require_content* is True an empty *content* is rejected with a
        ValueError; this is the check applied to operator input.
    """

    if require_content:
        if content is None or str(content).strip() == '':
            raise ValueError('message content must not be empty')

    tag = registry.normalize(type)
    entry = registry.classify(tag)

    override = registrymodule.priority_value(priority)
    if priority is not None and override is None:
        raise ValueError('invalid priority: ' + repr(priority))

    if override is None:
        override = entry.priority

    return Message(tag, content, override, entry.requires_ack, **extras)


def level(priority):
    """ Return the level name corresponding to a numeric *priority*.
    """

    for name,value in registrymodule.priorities.items():
        if value == priority:
            return name

    return str(priority)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
