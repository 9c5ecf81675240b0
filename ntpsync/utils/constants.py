"""Constants shared across ntpsync."""

APP_NAME = "ntpsync"

# NTP
NTP_PORT = 123
NTP_SERVICE = "123"
NTP_PACKET_SIZE = 48
NTP_VERSION = 4
NTP_MIN_VERSION = 3
NTP_MAX_VERSION = 4

# Seconds from 1900-01-01 (NTP epoch) to 1970-01-01 (Unix epoch).
# There are 17 leap years in this period.
NTP_UNIX_DELTA = (70 * 365 + 17) * 24 * 60 * 60

ERA_SECONDS = 2 ** 32
HALF_ERA_SECONDS = 2 ** 31

# Transient resource exhaustion on send()/poll(). Tuned for hosts that only
# allow a handful of concurrent select()/poll() calls.
SEND_MAX_ATTEMPTS = 4
SEND_RETRY_DELAY = 0.1
POLL_MAX_ATTEMPTS = 4
POLL_RETRY_DELAY = 0.01

RECV_BUFFER_SIZE = 1024

# Background runner
BOOT_GRACE_PERIOD = 5.0
STOP_POLL_INTERVAL = 0.1
STOP_MAX_POLLS = 100

# Server list separators
SERVER_SEPARATORS = " \t,;"

# Configuration defaults
DEFAULT_SERVER = "pool.ntp.org"
DEFAULT_TIMEOUT = 5
DEFAULT_TOLERANCE_MS = 500
DEFAULT_THREADS = 4
DEFAULT_AUTO_TZ = False
DEFAULT_TZ_SERVICE = 0
DEFAULT_UTC_OFFSET = 0
DEFAULT_NOTIFY = 0
DEFAULT_SYNC_ON_BOOT = False
DEFAULT_SYNC_ON_CHANGES = True
DEFAULT_LOCAL_CLOCK = False
DEFAULT_INTERVAL = 60

MIN_TIMEOUT, MAX_TIMEOUT = 1, 10
MIN_TOLERANCE_MS, MAX_TOLERANCE_MS = 0, 5000
MIN_THREADS, MAX_THREADS = 0, 8
MIN_UTC_OFFSET, MAX_UTC_OFFSET = -12 * 60, 14 * 60
MIN_NOTIFY, MAX_NOTIFY = 0, 2
MIN_INTERVAL, MAX_INTERVAL = 0, 24 * 60

HTTP_TIMEOUT = 5
