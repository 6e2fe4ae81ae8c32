from __future__ import annotations
import os

# All settings are read once at import time; override via env vars.

PACKING_STRATEGY = os.getenv("QPCR_PACKING_STRATEGY", "first_fit_decreasing")

LOG_LEVEL = os.getenv("QPCR_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("QPCR_LOG_FILE") or None

HOST = os.getenv("QPCR_HOST", "127.0.0.1")
PORT = int(os.getenv("QPCR_PORT", "5050"))
DEBUG = os.getenv("QPCR_DEBUG", "0").lower() in ("1", "true", "yes", "on")

# Flask MAX_CONTENT_LENGTH for uploaded layout files
MAX_UPLOAD_BYTES = int(os.getenv("QPCR_MAX_UPLOAD_BYTES", str(1024 * 1024)))
