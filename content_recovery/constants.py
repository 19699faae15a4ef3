"""
Project-wide constants for the content recovery library

This module centralizes the retry, generation and logging defaults used
throughout the project so that settings, invoker and pipeline agree.
"""

# Retry and backoff
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1000
MAX_RETRY_DELAY_MS = 10_000
RETRY_JITTER_MS = 1000

# Generation defaults handed to the injected generation call
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_OUTPUT_TOKENS = 800
MAX_TEMPERATURE = 2.0

# Logging
RESPONSE_PREVIEW_CHARS = 100

# Telemetry toggles (read when a context is created)
TELEMETRY_ENV_VAR = "CONTENT_RECOVERY_TELEMETRY"
DEBUG_ENV_VAR = "DEBUG"

# Settings
ENV_PREFIX = "CONTENT_RECOVERY_"
