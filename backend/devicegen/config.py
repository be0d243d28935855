"""Generator configuration constants: single source of truth for all env vars."""

import os
import shutil
import sys

# Device configuration backend
DEVICE_API_BASE_URL = os.getenv("DEVICE_API_BASE_URL", "http://localhost:8000")

# Configuration source mode: "remote" (HTTP API) or "local" (mapping file)
CONFIG_MODE = os.getenv("DEVICEGEN_CONFIG_MODE", "remote")

# Local configuration mode: mapping file and scenario definitions
MAPPING_FILE = os.getenv("DEVICEGEN_MAPPING_FILE", "config/device-state-mapping.json")
SCENARIO_DIR = os.getenv("DEVICEGEN_SCENARIO_DIR", "config/scenarios")

# Generated output locations (relative to the frontend project root)
PROJECT_ROOT = os.getenv("DEVICEGEN_PROJECT_ROOT", ".")
OUTPUT_DIR = os.getenv("DEVICEGEN_OUTPUT_DIR", "src/pages/devices")
TYPES_DIR = os.getenv("DEVICEGEN_TYPES_DIR", "src/types/generated")
DOCS_DIR = os.getenv("DEVICEGEN_DOCS_DIR", "docs")

# Python interpreter used for schema introspection subprocesses
PYTHON_BIN = os.getenv("DEVICEGEN_PYTHON") or sys.executable or shutil.which("python3") or "python3"

# TypeScript compiler command (split on whitespace), e.g. "npx tsc"
TSC_COMMAND = os.getenv("DEVICEGEN_TSC") or ("tsc" if shutil.which("tsc") else "npx tsc")

# Server binding: used by the API entrypoint / uvicorn
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8100"))
