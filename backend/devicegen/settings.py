"""Generator runtime settings: tunable parameters for pipeline execution.

All values read from environment variables with sensible defaults.
Import from here instead of hardcoding.

Infrastructure config (API base URL, output paths, executables) stays
in devicegen/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


# =====================================================================
# Batch orchestration
# =====================================================================

# Devices generated concurrently per batch
BATCH_MAX_CONCURRENCY = _int("BATCH_MAX_CONCURRENCY", 3)

# Pause between batches (seconds) to spare the configuration backend
BATCH_INTER_BATCH_DELAY = _float("BATCH_INTER_BATCH_DELAY", 0.5)


# =====================================================================
# Error recovery
# =====================================================================

# Attempts per (device, error type) before a retryable error becomes terminal
ERROR_MAX_RETRIES = _int("ERROR_MAX_RETRIES", 3)

# Exponential backoff: base * 2^attempt, capped (milliseconds)
ERROR_BACKOFF_BASE_MS = _int("ERROR_BACKOFF_BASE_MS", 1000)
ERROR_BACKOFF_CAP_MS = _int("ERROR_BACKOFF_CAP_MS", 30000)


# =====================================================================
# Schema introspection
# =====================================================================

# Subprocess timeouts (seconds): "module.path:Class" vs "file.py:Class" references
INTROSPECT_MODULE_TIMEOUT = _float("INTROSPECT_MODULE_TIMEOUT", 15.0)
INTROSPECT_FILE_TIMEOUT = _float("INTROSPECT_FILE_TIMEOUT", 10.0)

# Synthetic field used when introspection fails
INTROSPECT_FALLBACK_FIELD = _str("INTROSPECT_FALLBACK_FIELD", "deviceStatus")


# =====================================================================
# Validation
# =====================================================================

# TypeScript compiler run timeout (seconds)
TSC_TIMEOUT = _float("TSC_TIMEOUT", 120.0)


# =====================================================================
# Remote configuration client
# =====================================================================

CONFIG_HTTP_TIMEOUT = _float("CONFIG_HTTP_TIMEOUT", 10.0)
CONFIG_HTTP_MAX_CONNECTIONS = _int("CONFIG_HTTP_MAX_CONNECTIONS", 10)
CONFIG_HTTP_MAX_KEEPALIVE = _int("CONFIG_HTTP_MAX_KEEPALIVE", 5)
