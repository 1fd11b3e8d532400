""" In-memory session logs and counters. Nothing here is persisted; every
    node owns its own instances, and all state lasts only as long as the
    process does.
"""

import collections
import threading
import time

from .protocol import fields


Sent = collections.namedtuple('Sent', ('id', 'destination', 'sent_at', 'deadline', 'message'))
Received = collections.namedtuple('Received', ('id', 'sender', 'received_at', 'response'))
Processed = collections.namedtuple('Processed', ('id', 'sender', 'timestamp', 'type', 'priority', 'log_level', 'message'))
Replied = collections.namedtuple('Replied', ('recipient', 'timestamp', 'response'))

Status = collections.namedtuple('Status', ('uptime', 'messages_processed', 'responses_sent'))


class History:
    """ An append-only sequence of records. Records are only ever added at
        the end; the only other mutation is :func:`clear`.
    """

    def __init__(self, lock=None):

        if lock is None:
            lock = threading.RLock()

        self.lock = lock
        self._records = list()


    def __iter__(self):
        with self.lock:
            records = list(self._records)
        return iter(records)


    def __len__(self):
        return len(self._records)


    def append(self, record):
        with self.lock:
            self._records.append(record)


    def clear(self):
        with self.lock:
            self._records = list()


    def recent(self, count):
        """ Return the last *count* records in arrival order. A log with
            fewer records returns all of them.
        """

        count = int(count)

        if count <= 0:
            return list()

        with self.lock:
            return list(self._records[-count:])


# end of class History



class ServerSession:
    """ The logs and counters owned by a dispatcher. The *received* history
        contains one :class:`Processed` record per inbound message, the
        *responses* history one :class:`Replied` record per response sent.

        All mutation goes through a single lock shared with both histories,
        so that :func:`clear` and :func:`snapshot` are atomic with respect
        to each other.
    """

    def __init__(self):

        self.lock = threading.RLock()
        self.received = History(self.lock)
        self.responses = History(self.lock)
        self.messages_processed = 0
        self.responses_sent = 0
        self.start_time = time.time()


    def next_id(self):
        """ Increment the processed counter and return the new value.
        """

        with self.lock:
            self.messages_processed += 1
            return self.messages_processed


    def replied(self, record):
        with self.lock:
            self.responses.append(record)
            self.responses_sent += 1


    def clear(self):
        """ Empty both logs and reset the counters. The start time is
            retained, uptime is unaffected.
        """

        with self.lock:
            self.received.clear()
            self.responses.clear()
            self.messages_processed = 0
            self.responses_sent = 0


    def snapshot(self, now=None):

        if now is None:
            now = time.time()

        with self.lock:
            return Status(now - self.start_time, self.messages_processed, self.responses_sent)


    def active_alerts(self, now=None):
        """ Return the number of alerts received whose duration has not
            yet elapsed.
        """

        if now is None:
            now = time.time()

        active = 0

        for record in self.received:
            if record.type != fields.ALERT:
                continue

            duration = record.message.extras.get('duration', fields.DEFAULT_DURATION)

            try:
                duration = float(duration)
            except (TypeError, ValueError):
                continue

            if record.timestamp + duration > now:
                active += 1

        return active


# end of class ServerSession


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
