""" Static per-type metadata for messages: priority, auto-response text,
    log level, and whether the type asks for an acknowledgment. A
    :class:`Registry` never raises on lookup; any tag it does not recognize
    is handled as the fallback type.
"""

import collections
import logging


Entry = collections.namedtuple('Entry', ('priority', 'auto_response', 'log_level', 'requires_ack'))

FALLBACK = 'GENERAL'

# Named priority levels, most urgent first. The index into this tuple
# (counting from one) is what an operator types to select a level.

levels = ('CRITICAL', 'HIGH', 'MEDIUM', 'LOW', 'INFO')
priorities = dict(CRITICAL=5, HIGH=4, MEDIUM=3, LOW=2, INFO=1)


class Registry:
    """ An immutable lookup table mapping an upper case message type tag
        to its :class:`Entry`. The *entries* dictionary must include an
        entry for the fallback type.
    """

    def __init__(self, entries, fallback=FALLBACK):

        entries = dict((str(tag).upper(), entry) for tag,entry in entries.items())

        if fallback in entries:
            pass
        else:
            raise ValueError('registry must define the fallback type ' + repr(fallback))

        self._entries = entries
        self.fallback = fallback


    def __contains__(self, tag):
        if tag is None:
            return False
        return str(tag).strip().upper() in self._entries


    def __iter__(self):
        return iter(self._entries)


    def __len__(self):
        return len(self._entries)


    def classify(self, tag):
        """ Return the :class:`Entry` for the specified *tag*.
        """

        tag = self.normalize(tag)
        return self._entries[tag]


    def normalize(self, tag):
        """ Return the canonical form of *tag*: upper case if it is a known
            type, otherwise the fallback type.
        """

        if tag is None:
            return self.fallback

        tag = str(tag).strip().upper()

        if tag in self._entries:
            return tag

        return self.fallback


    def log_level(self, tag):
        """ Return the numeric :mod:`logging` level for messages of this type.
        """

        name = self.classify(tag).log_level
        return logging.getLevelName(name)


# end of class Registry



def alert_priority(index):
    """ Translate an operator-supplied priority index (1 through 5, with 1
        being the most urgent) into the level name.
    """

    try:
        index = int(index)
    except (TypeError, ValueError):
        raise ValueError('priority index must be an integer, not ' + repr(index))

    if index < 1 or index > len(levels):
        raise ValueError('priority index must be between 1 and %d, not %d' % (len(levels), index))

    return levels[index - 1]



def priority_value(priority):
    """ Return the numeric priority for *priority*, which can be either a
        number or one of the named levels. Returns None if it is neither.
    """

    if priority is None:
        return None

    if isinstance(priority, bool):
        return None

    if isinstance(priority, (int, float)):
        return int(priority)

    name = str(priority).strip().upper()

    try:
        return priorities[name]
    except KeyError:
        pass

    try:
        return int(name)
    except ValueError:
        return None


communication = Registry({
    'EMERGENCY': Entry(5, 'Emergency alert received. Response team has been notified.', 'CRITICAL', True),
    'STATUS_REQUEST': Entry(2, 'System operational. All services running normally.', 'INFO', False),
    'DATA_QUERY': Entry(3, 'Data query processed. Results attached.', 'INFO', False),
    'GENERAL': Entry(1, 'Message received and logged.', 'INFO', False),
})


alert = Registry({
    'ALERT': Entry(4, 'Alert received and broadcast to central command.', 'WARNING', True),
    'STATUS_REQUEST': Entry(2, 'Central command online.', 'INFO', False),
    'GENERAL': Entry(1, 'Message received and logged.', 'INFO', False),
})


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
