"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Wire keys for an outbound message.
TYPE = "type"
CONTENT = "content"
PRIORITY = "priority"
REQUIRES_ACK = "requires_ack"
CLIENT_ID = "client_id"
CLIENT_MESSAGE_ID = "client_message_id"
SENT_AT = "sent_at"

MESSAGE_KEYS = frozenset((TYPE, CONTENT, PRIORITY, REQUIRES_ACK, CLIENT_ID, CLIENT_MESSAGE_ID, SENT_AT))

# Wire keys for a response.
ORIGINAL_MESSAGE_ID = "original_message_id"
SERVER_ID = "server_id"
TIMESTAMP = "timestamp"
STATUS = "status"
MESSAGE = "message"
REPLY_TO = "reply_to"

RESPONSE_KEYS = frozenset((TYPE, ORIGINAL_MESSAGE_ID, SERVER_ID, TIMESTAMP, STATUS, MESSAGE, REPLY_TO))

# Response status values.
RECEIVED = "RECEIVED"

# Response type tags.
RESPONSE = "RESPONSE"
CONFIRMATION = "confirmation"
STATUS_RESPONSE = "status_response"

# Enrichment block names.
SERVER_STATUS = "server_status"
QUERY_RESULT = "query_result"
EMERGENCY_RESPONSE = "emergency_response"
ALERT_CONFIRMATION = "alert_confirmation"
SYSTEM_STATUS = "system_status"

BLOCKS = frozenset((SERVER_STATUS, QUERY_RESULT, EMERGENCY_RESPONSE, ALERT_CONFIRMATION, SYSTEM_STATUS))

# Message type tags.
EMERGENCY = "EMERGENCY"
STATUS_REQUEST = "STATUS_REQUEST"
DATA_QUERY = "DATA_QUERY"
GENERAL = "GENERAL"
ALERT = "ALERT"

# Seconds an alert stays active when the sender gives no duration.
DEFAULT_DURATION = 300
