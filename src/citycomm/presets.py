""" Pre-defined alerts for quick deployment from a field station. The
    priority is a named level and the duration is in seconds.
"""

import collections


Preset = collections.namedtuple('Preset', ('message', 'priority', 'duration'))

quick_alerts = dict()
quick_alerts['F1'] = Preset('FIRE EMERGENCY - Immediate evacuation may be required', 'CRITICAL', 1800)
quick_alerts['F2'] = Preset('MEDICAL EMERGENCY - Medical assistance required', 'CRITICAL', 900)
quick_alerts['F3'] = Preset('SECURITY ALERT - Potential threat detected', 'HIGH', 600)
quick_alerts['F4'] = Preset('INFRASTRUCTURE PROBLEM - City services may be affected', 'MEDIUM', 1200)


def get(key):
    """ Return the :class:`Preset` for *key*, such as 'F1'; case-insensitive.
    """

    try:
        return quick_alerts[str(key).upper()]
    except KeyError:
        raise KeyError('unknown quick alert: ' + repr(key))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
