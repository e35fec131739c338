"""Central configuration constants for Flow Ledger.

Defaults used throughout the client. Each can be overridden through a
FLOWLEDGER_* environment variable when the configuration is loaded
(see flowledger.config.AppConfig.from_env).

Environment Variables:
    FLOWLEDGER_API_BASE_URL - Backend base URL (default: http://localhost:8000/api)
    FLOWLEDGER_HTTP_TIMEOUT - Per-request timeout in seconds (default: 10)
    FLOWLEDGER_POLL_INTERVAL - Seconds between task status reads (default: 1.5)
    FLOWLEDGER_POLL_TIMEOUT - Overall polling budget in seconds (default: 600)
    FLOWLEDGER_POLL_FETCH_RETRIES - Retries for a transient status read (default: 0)
    FLOWLEDGER_POLL_RETRY_BACKOFF - Base backoff for those retries (default: 0.5)
"""

import os

from flowledger.core.errors import InvalidConfigError

# =============================================================================
# Backend
# =============================================================================

DEFAULT_API_BASE_URL: str = "http://localhost:8000/api"

# Per-request timeout (seconds)
HTTP_TIMEOUT: float = 10.0

# Backend error codes that invalidate the stored access token
TOKEN_INVALID_CODES = frozenset({"invalid_token_signature", "token_expired", "unauthorized"})

# =============================================================================
# Task Polling
# =============================================================================

# Fixed delay between status reads (seconds)
POLL_INTERVAL: float = 1.5

# Wall-clock budget for one poll loop (seconds)
POLL_TIMEOUT: float = 600.0

# Status reads are idempotent; retrying transient failures is opt-in
POLL_FETCH_RETRIES: int = 0
POLL_RETRY_BACKOFF: float = 0.5

# =============================================================================
# Reference data
# =============================================================================

CURRENCY_PAGE_SIZE: int = 200

# =============================================================================
# Local state
# =============================================================================

DEFAULT_STATE_DIR: str = "~/.flowledger"
TOKEN_FILENAME: str = "access_token"
SESSION_FILENAME: str = "session.json"


# =============================================================================
# Helper Functions for Environment Variable Loading
# =============================================================================

def get_env_int(key: str, default: int) -> int:
    """Get integer from environment variable with validation.

    Raises:
        InvalidConfigError: If value is not a valid non-negative integer
    """
    value = os.getenv(key)
    if value is None or value == "":
        return default

    try:
        result = int(value)
    except ValueError:
        raise InvalidConfigError(key, value, "must be an integer")
    if result < 0:
        raise InvalidConfigError(key, value, "must be non-negative")
    return result


def get_env_float(key: str, default: float) -> float:
    """Get float from environment variable with validation.

    Raises:
        InvalidConfigError: If value is not a valid non-negative number
    """
    value = os.getenv(key)
    if value is None or value == "":
        return default

    try:
        result = float(value)
    except ValueError:
        raise InvalidConfigError(key, value, "must be a number")
    if result < 0:
        raise InvalidConfigError(key, value, "must be non-negative")
    return result


def get_env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")
