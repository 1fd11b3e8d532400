""" A :class:`Node` is the facilitator for running a dispatcher: it checks
    the configuration, brings the transport on the air, and runs the
    message loop and the operator console side by side until either one
    of them finishes.
"""

import logging
import threading
import time

from . import transport
from .console import Console
from .correlator import Correlator
from .dispatcher import Dispatcher
from .protocol import family as familymodule


logger = logging.getLogger(__name__)


class Node:
    """ A dispatcher node for one message *family*. The *config* is a
        :class:`citycomm.config.Configuration`; it is validated here, and a
        node with an unusable configuration refuses to start by raising
        :class:`citycomm.config.ConfigurationError`. The *hub* is only
        relevant for the in-memory transport.
    """

    join_timeout = 1

    def __init__(self, config, family=familymodule.communication, hub=None):

        config.validate()

        self.config = config
        self.family = family
        self.transport = transport.create(config, hub)
        self.dispatcher = Dispatcher(self.transport, family)
        self.dispatcher.poll_interval = config.poll_interval
        self.console = Console(self.dispatcher.session)
        self.stop = threading.Event()
        self.threads = list()


    @property
    def session(self):
        return self.dispatcher.session


    def run(self, stream=None, output=None, console=True):
        """ Run the dispatcher loop, and unless *console* is False, the
            operator console reading from *stream*. Returns when either
            activity finishes, or when :func:`shutdown` is invoked; the
            other activity is stopped and the transport is closed.
        """

        self.stop.clear()
        self.transport.open()

        logger.info("node %d running, family %s, protocol %s", self.transport.address, self.family.name, self.family.request_topic)

        activities = list()
        activities.append(('dispatcher', self.dispatcher.run, (self.stop,)))

        if console:
            activities.append(('console', self.console.run, (self.stop, stream, output)))

        self.threads = list()

        for name, target, arguments in activities:
            thread = threading.Thread(target=self._activity, args=(name, target, arguments), name=name)
            thread.daemon = True
            self.threads.append(thread)
            thread.start()

        try:
            self.stop.wait()
        finally:
            self.stop.set()

            # The console may be blocked reading input that will never
            # arrive; it is a daemon thread and is abandoned if it does
            # not finish promptly.

            for thread in self.threads:
                thread.join(self.join_timeout)

            self.transport.close()

        logger.info("node %d stopped", self.transport.address)


    def shutdown(self):
        self.stop.set()


    def _activity(self, name, target, arguments):
        """ Run one activity; whichever finishes first, for whatever
            reason, stops the node.
        """

        try:
            target(*arguments)
        except Exception:
            logger.exception("%s failed", name)
        finally:
            logger.debug("%s finished", name)
            self.stop.set()


# end of class Node



def client(config, family=familymodule.communication, hub=None, strict=False):
    """ Return a :class:`citycomm.correlator.Correlator` for *family* on a
        freshly opened transport. The caller is responsible for closing
        ``correlator.transport`` when finished.
    """

    config.validate()

    connection = transport.create(config, hub)
    connection.open()

    if connection.settle:
        time.sleep(connection.settle)

    return Correlator(connection, family, config.timeout, strict)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
