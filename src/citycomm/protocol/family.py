""" A message *family* is one instance of the request/response protocol: a
    pair of topics, the registry used to classify requests on the request
    topic, and the rules for the type-specific enrichment attached to each
    response. The correlation and dispatch logic is shared by every family.
"""

from .. import registry
from . import fields
from .message import level


class Family:
    """ One request/response topic pair and the semantics carried on it.

        The *responses* dictionary maps a request type tag to the response
        type tag; anything not listed gets the generic ``RESPONSE`` tag.
        The *enrichers* dictionary maps a request type tag to a function
        invoked as ``enricher(message, session, now)``, which returns the
        name of the enrichment block and its contents.
    """

    def __init__(self, name, request_topic, response_topic, registry, responses=None, enrichers=None):

        if request_topic == response_topic:
            raise ValueError('request and response topics must differ')

        self.name = name
        self.request_topic = request_topic
        self.response_topic = response_topic
        self.registry = registry
        self.responses = dict(responses or ())
        self.enrichers = dict(enrichers or ())


    def __repr__(self):
        return 'Family(%r, %r, %r)' % (self.name, self.request_topic, self.response_topic)


    def enrich(self, message, session, now):
        """ Return a (block, enrichment) tuple for the supplied
            :class:`citycomm.protocol.message.Message`, or (None, None) if
            this type of message carries no enrichment block.
        """

        try:
            enricher = self.enrichers[message.type]
        except KeyError:
            return None, None

        return enricher(message, session, now)


    def response_type(self, tag):
        return self.responses.get(tag, fields.RESPONSE)


# end of class Family



def server_status(message, session, now):
    status = dict()
    status['uptime_seconds'] = now - session.start_time
    status['messages_processed'] = session.messages_processed
    status['system_health'] = 'GOOD'
    return fields.SERVER_STATUS, status


def query_result(message, session, now):
    result = dict()
    result['total_messages'] = len(session.received)
    result['last_message_time'] = now
    result['server_load'] = 'NORMAL'
    return fields.QUERY_RESULT, result


def emergency_response(message, session, now):
    response = dict()
    response['alert_level'] = 'HIGH'
    response['response_team_notified'] = True
    response['estimated_response_time'] = '5-10 minutes'
    return fields.EMERGENCY_RESPONSE, response


def alert_confirmation(message, session, now):
    confirmation = dict()
    confirmation['alert_priority'] = level(message.priority)
    confirmation['duration'] = message.extras.get('duration', fields.DEFAULT_DURATION)
    confirmation['active_alerts'] = session.active_alerts(now)
    return fields.ALERT_CONFIRMATION, confirmation


def system_status(message, session, now):
    status = dict()
    status['system_status'] = 'OPERATIONAL'
    status['active_alerts'] = session.active_alerts(now)
    status['uptime_seconds'] = now - session.start_time
    return fields.SYSTEM_STATUS, status


communication = Family('communication', 'city_comm', 'city_response', registry.communication,
    enrichers={
        fields.STATUS_REQUEST: server_status,
        fields.DATA_QUERY: query_result,
        fields.EMERGENCY: emergency_response,
    })


alert = Family('alert', 'city_alert', 'city_alert_response', registry.alert,
    responses={
        fields.ALERT: fields.CONFIRMATION,
        fields.STATUS_REQUEST: fields.STATUS_RESPONSE,
    },
    enrichers={
        fields.ALERT: alert_confirmation,
        fields.STATUS_REQUEST: system_status,
    })


families = dict()
families[communication.name] = communication
families[alert.name] = alert


def get(name):
    """ Return the built-in :class:`Family` with the specified *name*.
    """

    try:
        return families[str(name).lower()]
    except KeyError:
        raise KeyError('unknown message family: ' + repr(name))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
