"""
Configuration management for the masterygraph client.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the project root or the package directory
PACKAGE_DIR = Path(__file__).parent.parent
PROJECT_ROOT = PACKAGE_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    package_env = PACKAGE_DIR / ".env"
    if package_env.exists():
        load_dotenv(package_env)

# API configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
API_V1_PREFIX = os.getenv("API_V1_PREFIX", "/api/v1").rstrip("/")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Cache settings
QUERY_STALE_TIME_SECONDS = float(os.getenv("QUERY_STALE_TIME_SECONDS", "30"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def api_root() -> str:
    """Base URL every endpoint path is appended to."""
    return f"{API_BASE_URL}{API_V1_PREFIX}"
