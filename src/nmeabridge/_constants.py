"""Internal constants shared across the package."""

SENTENCE_START = "$"
CHECKSUM_SEPARATOR = "*"
FIELD_SEPARATOR = ","
TALKER_ID_LENGTH = 2
TYPE_CODE_LENGTH = 3

#: Key under which the source sentence travels in push-channel messages.
RAW_KEY = "_raw"
HEARTBEAT_KEY = "_heartbeat"

# ------------------------------------------------------------------
# Unit conversions (everything leaves the decoder in knots / hPa)
# ------------------------------------------------------------------

MPS_TO_KNOTS = 1.94384
KMH_TO_KNOTS = 0.539957
BAR_TO_HPA = 1000.0

# ------------------------------------------------------------------
# Defaults for the persisted configuration
# ------------------------------------------------------------------

DEFAULT_GATEWAY_HOST = "192.168.0.1"
DEFAULT_GATEWAY_PORT = 10110
DEFAULT_PROTOCOL = "tcp"
DEFAULT_RECONNECT_INTERVAL_MS = 5000
DEFAULT_PUSH_CHANNEL_HOST = "0.0.0.0"
DEFAULT_PUSH_CHANNEL_PORT = 3001
DEFAULT_HEARTBEAT_INTERVAL_MS = 10_000
DEFAULT_CONFIG_FILENAME = "config.json"

#: Seconds allowed for a TCP connect before it counts as a failure.
CONNECT_TIMEOUT_S = 10.0
READ_CHUNK_SIZE = 4096

#: Outbound messages buffered per push subscriber before records are skipped.
SUBSCRIBER_QUEUE_SIZE = 256
