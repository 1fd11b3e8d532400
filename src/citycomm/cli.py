""" Command line entry point. The sub-commands are thin: they build a
    :class:`citycomm.config.Configuration` from the arguments, then either
    run a :class:`citycomm.node.Node` or send one message through a
    :class:`citycomm.correlator.Correlator` and print the outcome.
"""

import argparse
import logging

from . import config as configmodule
from . import presets
from . import registry
from .config import ConfigurationError
from .node import Node, client
from .protocol import family as familymodule
from .protocol import fields
from .transport import TransportError


logger = logging.getLogger(__name__)


def main(argv=None):

    parser = build_parser()
    arguments = parser.parse_args(argv)

    level = logging.DEBUG if arguments.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        config = configmodule.Configuration(arguments.home,
                                            address=arguments.address,
                                            transport=arguments.transport,
                                            timeout=arguments.default_timeout)
        return arguments.handler(config, arguments)
    except (ConfigurationError, TransportError) as e:
        logger.error("cannot start: %s", str(e))
        return 2
    except (KeyError, ValueError) as e:
        parser.error(str(e))


def build_parser():

    parser = argparse.ArgumentParser(prog='citycomm', description='Exchange prioritized messages with a central dispatcher.')
    parser.add_argument('--home', default=None, help='configuration directory, default $CITYCOMM_HOME or ~/.citycomm')
    parser.add_argument('--address', type=int, default=None, help='numeric address of this node')
    parser.add_argument('--transport', choices=('zmq', 'memory'), default=None, help='transport backend')
    parser.add_argument('--default-timeout', type=float, default=None, help='default response timeout in seconds')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    serve = commands.add_parser('serve', help='run a dispatcher node')
    serve.add_argument('--family', choices=sorted(familymodule.families), default='communication')
    serve.add_argument('--no-console', action='store_true', help='do not read operator commands from stdin')
    serve.set_defaults(handler=serve_command)

    send = commands.add_parser('send', help='send one message and wait for the response')
    send.add_argument('--to', type=int, default=None, help='destination address, default from configuration')
    send.add_argument('--type', default='GENERAL', help='message type tag')
    send.add_argument('--priority', default=None, help='priority override, numeric or a level name')
    send.add_argument('--timeout', type=float, default=None, help='seconds to wait for the response')
    send.add_argument('--extra', action='append', default=list(), metavar='KEY=VALUE', help='additional message field')
    send.add_argument('content', nargs='+')
    send.set_defaults(handler=send_command)

    alert = commands.add_parser('alert', help='send an alert to central command')
    alert.add_argument('--to', type=int, default=None, help='destination address, default from configuration')
    alert.add_argument('--preset', default=None, help='quick alert: ' + ', '.join(sorted(presets.quick_alerts)))
    alert.add_argument('--priority', type=int, default=5, help='priority index, 1 (CRITICAL) through 5 (INFO)')
    alert.add_argument('--duration', type=float, default=5, help='minutes the alert stays active')
    alert.add_argument('--station', default=None, help='name of the sending station')
    alert.add_argument('--timeout', type=float, default=None, help='seconds to wait for the confirmation')
    alert.add_argument('message', nargs='*')
    alert.set_defaults(handler=alert_command)

    ping = commands.add_parser('ping', help='test the connection to a dispatcher')
    ping.add_argument('--to', type=int, default=None, help='destination address, default from configuration')
    ping.add_argument('--family', choices=sorted(familymodule.families), default='communication')
    ping.set_defaults(handler=ping_command)

    return parser


def serve_command(config, arguments):
    family = familymodule.get(arguments.family)
    node = Node(config, family)

    try:
        node.run(console=not arguments.no_console)
    except KeyboardInterrupt:
        node.shutdown()

    return 0


def send_command(config, arguments):
    extras = parse_extras(arguments.extra)
    content = ' '.join(arguments.content)

    correlator = client(config, familymodule.communication)
    try:
        message = correlator.build_message(arguments.type, content, priority=arguments.priority, require_content=True, **extras)
        delivered, response = correlator.send(destination(config, arguments), message, arguments.timeout)
    finally:
        correlator.stop()
        correlator.transport.close()

    return report(delivered, response, correlator.timeout if arguments.timeout is None else arguments.timeout)


def alert_command(config, arguments):

    if arguments.preset is not None:
        preset = presets.get(arguments.preset)
        text = preset.message
        priority = preset.priority
        duration = preset.duration
    else:
        text = ' '.join(arguments.message)
        priority = registry.alert_priority(arguments.priority)
        duration = int(arguments.duration * 60)

    extras = dict(duration=duration)
    if arguments.station is not None:
        extras['station'] = arguments.station

    correlator = client(config, familymodule.alert)
    try:
        message = correlator.build_message('ALERT', text, priority=priority, require_content=True, **extras)
        delivered, response = correlator.send(destination(config, arguments), message, arguments.timeout)
    finally:
        correlator.stop()
        correlator.transport.close()

    return report(delivered, response, correlator.timeout if arguments.timeout is None else arguments.timeout)


def ping_command(config, arguments):
    family = familymodule.get(arguments.family)

    correlator = client(config, family)
    try:
        delivered, response = correlator.test_connection(destination(config, arguments))
    finally:
        correlator.stop()
        correlator.transport.close()

    if delivered:
        print('Server connection confirmed')
        print('Server status: ' + str(response.status))
        return 0

    print('No response from server')
    return 1


def destination(config, arguments):
    if arguments.to is None:
        return config.server
    return arguments.to


reserved = ('registry', 'require_content', 'sender', 'id')


def parse_extras(pairs):
    """ Translate KEY=VALUE strings into a dictionary.
    """

    extras = dict()

    for pair in pairs:
        if '=' not in pair:
            raise ValueError('extra fields must be KEY=VALUE, not ' + repr(pair))

        key, value = pair.split('=', 1)
        key = key.strip()

        if key == '':
            raise ValueError('extra field names must not be empty')

        if key in fields.MESSAGE_KEYS or key in reserved:
            raise ValueError('extra field name is reserved: ' + repr(key))

        extras[key] = value

    return extras


def report(delivered, response, timeout):
    """ Print the interesting parts of a response. Returns the exit code.
    """

    if delivered == False:
        print('No response received within %g seconds' % (timeout))
        return 1

    print('Response received from server %s' % (response.server_id))
    print('Server message: ' + str(response.message))

    if response.block is not None:
        print(response.block + ':')
        for key, value in response.enrichment.items():
            print('    %s: %s' % (key, value))

    return 0


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
