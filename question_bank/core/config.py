"""
Question catalog configuration.
All settings come from environment variables (optionally loaded from a .env file).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/questions.db")

# Debug flag is also exposed as a function so tests can flip it at runtime
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Category used when an operator types a bare number ("418")
DEFAULT_CATEGORY = os.getenv("DEFAULT_CATEGORY", "WFD").upper()  # WFD|RS|RA

# Remote document stores cap "field in [...]" queries; 10 matches the original store
MEMBERSHIP_CHUNK_SIZE = int(os.getenv("MEMBERSHIP_CHUNK_SIZE", "10"))

# Debounce delays for interactive search boxes
SEARCH_DEBOUNCE_SEC = float(os.getenv("SEARCH_DEBOUNCE_SEC", "1.0"))
RECONCILE_DEBOUNCE_SEC = float(os.getenv("RECONCILE_DEBOUNCE_SEC", "0.5"))

# Bulk import policy: false keeps going after a failed item and reports it
BULK_STOP_ON_ERROR = os.getenv("BULK_STOP_ON_ERROR", "false").lower() == "true"

# Browser front end origins allowed by the API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001",
    ).split(",")
    if origin.strip()
]

# API server binding (scripts/run_api.py)
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Version string
VERSION = "1.2.0"


def get_db_path() -> str:
    """Current database path. Read on every call so DB_PATH can change between tests."""
    return os.getenv("DB_PATH", DB_PATH)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def get_default_category() -> str:
    """Category assumed for input that carries no tag and no hint."""
    return os.getenv("DEFAULT_CATEGORY", DEFAULT_CATEGORY).upper()


def get_membership_chunk_size() -> int:
    return int(os.getenv("MEMBERSHIP_CHUNK_SIZE", str(MEMBERSHIP_CHUNK_SIZE)))


def bulk_stop_on_error() -> bool:
    return os.getenv("BULK_STOP_ON_ERROR", "true" if BULK_STOP_ON_ERROR else "false").lower() == "true"


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_default_category() not in ["WFD", "RS", "RA"]:
        issues.append(f"Invalid DEFAULT_CATEGORY: {get_default_category()}")

    if get_membership_chunk_size() < 1:
        issues.append("MEMBERSHIP_CHUNK_SIZE must be >= 1")

    if SEARCH_DEBOUNCE_SEC < 0 or RECONCILE_DEBOUNCE_SEC < 0:
        issues.append("Debounce delays must be >= 0")

    if not 0 < API_PORT < 65536:
        issues.append(f"Invalid API_PORT: {API_PORT}")

    return issues
