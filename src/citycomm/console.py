""" The administrative command surface of a dispatcher node. Commands are
    read one per line; each produces a block of text for the operator.
"""

import logging
import resource
import sys



logger = logging.getLogger(__name__)

commands = ('status', 'messages', 'clear', 'shutdown')
usage = 'Available commands: ' + ', '.join(commands)


class Console:
    """ Service operator commands against a
        :class:`citycomm.history.ServerSession`. Unknown commands are
        rejected with the usage text and change nothing.
    """

    recent = 6

    def __init__(self, session):
        self.session = session


    def execute(self, line):
        """ Execute one command *line*. Returns a (text, done) tuple, where
            *done* is True if the operator asked for a shutdown.
        """

        command = line.strip().lower()

        if command == 'status':
            return self.status(), False

        if command == 'messages':
            return self.messages(), False

        if command == 'clear':
            self.session.clear()
            logger.info("message logs cleared by operator")
            return 'Message logs cleared', False

        if command == 'shutdown':
            return 'Shutting down server...', True

        if command == '':
            return '', False

        return usage, False


    def status(self):

        status = self.session.snapshot()
        rusage = resource.getrusage(resource.RUSAGE_SELF)

        lines = list()
        lines.append('SYSTEM STATUS REPORT')
        lines.append('Uptime: %d minutes' % (int(status.uptime / 60)))
        lines.append('Messages processed: %d' % (status.messages_processed))
        lines.append('Responses sent: %d' % (status.responses_sent))
        lines.append('Memory usage: %d KB' % (rusage.ru_maxrss))
        lines.append('=' * 40)

        return '\n'.join(lines)


    def messages(self):

        records = self.session.received.recent(self.recent)

        if len(records) == 0:
            return 'No messages received'

        lines = ['Recent messages:']

        for record in records:
            lines.append('#%d from %s: %s' % (record.id, record.sender, record.type))

        return '\n'.join(lines)


    def run(self, stop, stream=None, output=None):
        """ Read commands from *stream* until the operator asks for a
            shutdown, the stream is exhausted, or the *stop* event is set.
        """

        if stream is None:
            stream = sys.stdin
        if output is None:
            output = sys.stdout

        while stop.is_set() == False:
            line = stream.readline()

            if line == '':
                logger.info("console input closed")
                return

            text, done = self.execute(line)

            if text:
                output.write(text + '\n')
                output.flush()

            if done:
                return


# end of class Console


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
