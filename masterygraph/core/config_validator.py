"""
Configuration validation for the masterygraph client.
Validates API settings and, optionally, that the API is reachable.
"""
import logging
from typing import List, Dict, Any
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


class ConfigValidator:
    """Validates client configuration before any request is made."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self, check_connectivity: bool = False) -> Dict[str, Any]:
        """
        Run all validation checks.

        Args:
            check_connectivity: Also probe the API over the network

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        self._validate_api_url()
        self._validate_config_values()
        if check_connectivity and not self.errors:
            self._validate_api_connection()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def raise_if_invalid(self, check_connectivity: bool = False) -> None:
        """Run all checks and raise ConfigurationError on the first failure set."""
        result = self.validate_all(check_connectivity=check_connectivity)
        for warning in result["warnings"]:
            logger.warning(warning)
        if not result["valid"]:
            raise ConfigurationError("; ".join(result["errors"]))

    def _validate_api_url(self):
        """Check that the API base URL and prefix are well formed."""
        from masterygraph.core import config

        parsed = urlparse(config.API_BASE_URL)
        if parsed.scheme not in ("http", "https"):
            self.errors.append(
                f"API_BASE_URL must start with http:// or https:// (got '{config.API_BASE_URL}')"
            )
        elif not parsed.netloc:
            self.errors.append(f"API_BASE_URL has no host: '{config.API_BASE_URL}'")
        elif parsed.scheme == "http" and parsed.hostname not in ("localhost", "127.0.0.1"):
            self.warnings.append(
                f"API_BASE_URL uses plain http for a remote host: {config.API_BASE_URL}"
            )

        if config.API_V1_PREFIX and not config.API_V1_PREFIX.startswith("/"):
            self.errors.append(
                f"API_V1_PREFIX must start with '/' (got '{config.API_V1_PREFIX}')"
            )

    def _validate_config_values(self):
        """Validate configuration value ranges."""
        from masterygraph.core import config

        if config.HTTP_TIMEOUT_SECONDS <= 0:
            self.errors.append(
                f"HTTP_TIMEOUT_SECONDS ({config.HTTP_TIMEOUT_SECONDS}) must be > 0"
            )

        if config.QUERY_STALE_TIME_SECONDS < 0:
            self.errors.append(
                f"QUERY_STALE_TIME_SECONDS ({config.QUERY_STALE_TIME_SECONDS}) must be >= 0"
            )

        if config.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            self.warnings.append(
                f"LOG_LEVEL ({config.LOG_LEVEL}) is not a standard level, INFO will be used"
            )

    def _validate_api_connection(self):
        """Check that the learning API is reachable."""
        from masterygraph.core.config import API_BASE_URL

        try:
            response = requests.get(API_BASE_URL, timeout=5)
            if response.status_code >= 500:
                self.warnings.append(
                    f"Learning API at {API_BASE_URL} answered with HTTP {response.status_code}"
                )
        except requests.exceptions.ConnectionError:
            self.warnings.append(
                f"Cannot connect to the learning API at {API_BASE_URL}. "
                "Requests will fail until it is reachable."
            )
        except requests.exceptions.Timeout:
            self.warnings.append(f"Learning API connection timeout at {API_BASE_URL}.")
        except requests.exceptions.RequestException as e:
            self.warnings.append(f"Learning API connection error: {e}")


# Global validator instance
config_validator = ConfigValidator()
