"""Shared constants for the RPC client."""

# Consecutive failures before an upstream is marked sick, and consecutive
# successful liveness checks before it is marked alive again
SICK_THRESHOLD = 5

JSONRPC_VERSION = "2.0"

# Request id sent with every call; the daemon echoes it back
JSONRPC_REQUEST_ID = 0

# Path of the JSON-RPC endpoint on the daemon
JSONRPC_PATH = "/json_rpc"

JSON_CONTENT_TYPE = "application/json"

# Default daemon RPC port
DEFAULT_DAEMON_PORT = 18081

# Default per-call timeout (duration string)
DEFAULT_TIMEOUT = "10s"

# Maximum length for error messages in logs (prevents log bloat from verbose daemon errors)
MAX_ERROR_MESSAGE_LENGTH = 200
