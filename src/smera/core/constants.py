"""Global constants for Smera.

Centralizes magic numbers used throughout the codebase.
"""

from pathlib import Path

# =============================================================================
# Retry Executor Defaults
# =============================================================================

DEFAULT_MAX_RETRIES = 3
"""Retries after the first attempt (4 attempts total)."""

DEFAULT_INITIAL_DELAY_SECONDS = 1.0
"""Delay before the first retry, before jitter."""

DEFAULT_MAX_DELAY_SECONDS = 10.0
"""Cap applied to the exponential delay, before jitter."""

DEFAULT_BACKOFF_MULTIPLIER = 2.0
"""Geometric growth factor between consecutive retry delays."""

DEFAULT_ATTEMPT_TIMEOUT_SECONDS = 30.0
"""Per-attempt timeout for a wrapped AI call."""

JITTER_MIN_FACTOR = 0.8
JITTER_MAX_FACTOR = 1.2
"""Uniform multiplicative jitter bounds (+/-20%)."""

# =============================================================================
# Offline Mutation Queue
# =============================================================================

MAX_QUEUE_RETRIES = 3
"""Failed replays after which a queued operation is dropped."""

DEFAULT_QUEUE_DIR = Path("~/.smera")
DEFAULT_QUEUE_DB_NAME = "offline_queue.db"

# =============================================================================
# Task API / Connectivity
# =============================================================================

DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_API_TOKEN_ENV = "SMERA_API_TOKEN"
DEFAULT_API_TIMEOUT_SECONDS = 15.0
DEFAULT_HEALTH_PATH = "/health"
DEFAULT_PROBE_INTERVAL_SECONDS = 15.0

TRUNCATE_ERROR_MESSAGE_CHARS = 200
"""Maximum characters of an error kept on a queued record."""
