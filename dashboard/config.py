from __future__ import annotations
import os

APP_TITLE = "Submission analysis"

ANALYSIS_API_URL = os.getenv("ANALYSIS_API_URL", "http://localhost:8080")
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "60"))

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "3"))
POLL_TIMEOUT_SECONDS = float(os.getenv("POLL_TIMEOUT_SECONDS", "60"))
