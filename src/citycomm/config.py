""" Node configuration. A :class:`Configuration` is assembled from built-in
    defaults, then the contents of ``node.json`` in the configuration
    directory (if present), then any explicit keyword overrides provided by
    the caller.
"""

import os

from . import json


defaults = dict()
defaults['address'] = None
defaults['endpoints'] = dict()
defaults['poll_interval'] = 0.1
defaults['server'] = 1
defaults['timeout'] = 10
defaults['transport'] = 'zmq'

filename = 'node.json'


class ConfigurationError(ValueError):
    """ The node cannot operate with the configuration it was given. This
        is always fatal at startup; a node refuses to run rather than run
        in a non-functional state.
    """


class Configuration:
    """ A convenience class to represent the configuration of a single node.
        Attribute access is used for the well-known settings; the endpoint
        map translates a numeric peer address to a transport endpoint, for
        example ``{1: 'tcp://10.0.0.5:10140'}``.

        :ivar address: The numeric address of this node.
        :ivar endpoints: Dictionary of numeric address to endpoint string.
        :ivar timeout: Default correlation timeout, in seconds.
        :ivar server: Default destination address for client requests.
    """

    def __init__(self, home=None, **overrides):

        self.home = home
        settings = dict(defaults)
        settings['endpoints'] = dict()

        loaded = self.load(home)
        settings.update(loaded)

        for key,value in overrides.items():
            if value is None:
                continue
            settings[key] = value

        self.address = settings['address']
        self.endpoints = _normalize_endpoints(settings['endpoints'])
        self.poll_interval = float(settings['poll_interval'])
        self.server = int(settings['server'])
        self.timeout = float(settings['timeout'])
        self.transport = str(settings['transport']).lower()

        if self.address is not None:
            self.address = int(self.address)


    def __repr__(self):
        return 'Configuration(address=%r, transport=%r, endpoints=%r)' % (self.address, self.transport, self.endpoints)


    def load(self, home=None):
        """ Return the dictionary contents of ``node.json`` in the
            configuration directory, or an empty dictionary if there is
            no such file.
        """

        base_dir = directory(home)
        target = os.path.join(base_dir, filename)

        if os.path.exists(target):
            pass
        else:
            return dict()

        with open(target, 'rb') as contents:
            raw = contents.read()

        try:
            loaded = json.loads(raw)
        except json.DecodeError as e:
            raise ConfigurationError("cannot parse %s: %s" % (target, str(e)))

        if isinstance(loaded, dict):
            pass
        else:
            raise ConfigurationError('the contents of %s must be a JSON object' % (target))

        return loaded


    def endpoint(self, address=None):
        """ Return the endpoint for the specified *address*, or for this
            node if no address is specified.
        """

        if address is None:
            address = self.address

        try:
            return self.endpoints[int(address)]
        except KeyError:
            raise ConfigurationError('no endpoint configured for address ' + str(address))


    def validate(self):
        """ Raise a :class:`ConfigurationError` if this configuration does
            not describe a node that can go on the air.
        """

        if self.address is None:
            raise ConfigurationError('no address configured for this node')

        if not self.timeout > 0:
            raise ConfigurationError('the default timeout must be positive, not ' + str(self.timeout))

        if not self.poll_interval > 0:
            raise ConfigurationError('the poll interval must be positive, not ' + str(self.poll_interval))

        if self.transport == 'zmq':
            self.endpoint()


# end of class Configuration



def directory(default=None):
    """ Return the directory location where we should be loading the node
        configuration from. This defaults to ``$HOME/.citycomm``, but can be
        overridden by calling this method with a path, or by setting the
        ``CITYCOMM_HOME`` environment variable.
    """

    if default is not None:
        default = str(default)
        default = os.path.expandvars(default)
        default = os.path.expanduser(default)
        return default

    try:
        found = os.environ['CITYCOMM_HOME']
    except KeyError:
        pass
    else:
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise ConfigurationError('CITYCOMM_HOME and HOME environment variables not set, cannot determine the configuration directory')

    return os.path.join(home, '.citycomm')



def _normalize_endpoints(endpoints):
    """ JSON object keys are always strings; the addresses are numeric.
    """

    normalized = dict()

    for address,endpoint in endpoints.items():
        try:
            address = int(address)
        except (TypeError, ValueError):
            raise ConfigurationError('endpoint addresses must be integers, not ' + repr(address))
        normalized[address] = str(endpoint)

    return normalized


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
