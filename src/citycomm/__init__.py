""" Python implementation of a city-wide message exchange: nodes send typed,
    prioritized messages over a shared best-effort network, and a central
    dispatcher answers each one with a correlated response.
"""

# Utility components.

from . import json
from . import config
from . import registry
from . import presets

# Submodules used by multiple other components.

from . import protocol
from . import history
from . import transport

# Primary public-facing interfaces.

from .config import Configuration, ConfigurationError
from .correlator import Correlator
from .dispatcher import Dispatcher
from .console import Console
from .node import Node, client

__version__ = '1.0.0'

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
