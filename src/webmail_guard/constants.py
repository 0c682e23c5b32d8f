"""Constants for Webmail Guard."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".webmail-guard"
CACHE_DB_PATH = CONFIG_DIR / "cache.db"

# --- Remote classifier ---
API_ENDPOINT = "http://localhost:3000/api/scan-email"
RETRY_ATTEMPTS = 2  # total attempts on 429/503, then local fallback
RETRYABLE_STATUS_CODES = (429, 503)

# --- Status thresholds (score 0-100) ---
SCORE_SAFE = 80
SCORE_SUSPECTED = 50

# --- Local heuristic ---
HEURISTIC_BASE_SCORE = 85

# --- Extraction defaults ---
DEFAULT_SUBJECT = "No Subject"
PLACEHOLDER_SENDER = "unknown@sender.com"

# --- Change monitor ---
QUIET_PERIOD_SECONDS = 1.5
WATCH_INTERVAL_SECONDS = 1.0

# --- Supported webmail hosts ---
SUPPORTED_HOSTS = [
    "email.com",
    "mail.google.com",
    "outlook.live.com",
    "outlook.office.com",
    "mail.yahoo.com",
]

# --- Display ---
RECENT_RESULTS_LIMIT = 10
