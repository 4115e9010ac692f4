"""
Configuration Manager for ecr-login

All configuration comes from environment variables. The environment is
read once, when the ConfigManager is constructed, and every getter works
from that snapshot.
"""

import logging
import os
from typing import Dict, List, Mapping, Optional

from ecr_login.utils.error_utils import ConfigError

DEFAULT_LOG_LEVEL = "WARNING"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ConfigManager:
    """Manages configuration for ecr-login"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """Initialize ConfigManager

        Args:
            environ: Environment mapping to read (defaults to os.environ). It is
                copied, so later changes to the process environment are not seen.
        """
        self._env: Dict[str, str] = dict(os.environ if environ is None else environ)

    def _get(self, name: str) -> Optional[str]:
        """Return a variable's value, treating unset and blank alike"""
        value = self._env.get(name)
        if value is None or not value.strip():
            return None
        return value

    # Registry configuration
    def get_region(self) -> Optional[str]:
        """Get the explicit region from AWS_REGION, or None to use instance metadata"""
        region = self._get("AWS_REGION")
        return region.strip() if region else None

    def get_registry_ids(self) -> List[str]:
        """Get registry account IDs from the comma-separated REGISTRIES variable.

        Returns an empty list when REGISTRIES is unset, meaning the caller's
        default registry. Whitespace around each ID is stripped.

        Raises:
            ConfigError: If REGISTRIES contains an empty entry (e.g. "111,,222")
        """
        registries = self._get("REGISTRIES")
        if registries is None:
            return []

        registry_ids = [registry.strip() for registry in registries.split(",")]
        if not all(registry_ids):
            raise ConfigError(
                f"REGISTRIES contains an empty registry ID: {registries!r}",
                suggestions=[
                    "Use a comma-separated list of account IDs without empty entries",
                    "Example: REGISTRIES=111111111111,222222222222",
                ],
                details={"REGISTRIES": registries},
            )
        return registry_ids

    # Template configuration
    def get_template_path(self) -> Optional[str]:
        """Get the user template path from TEMPLATE, or None for the built-in template"""
        return self._get("TEMPLATE")

    def get_environ(self) -> Dict[str, str]:
        """Get a copy of the environment snapshot, for botocore's metadata lookup"""
        return dict(self._env)

    # Logging configuration
    def get_log_level(self) -> int:
        """Get the log level from LOG_LEVEL, with validation"""
        name = (self._get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
        try:
            return LOG_LEVELS[name]
        except KeyError:
            raise ConfigError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got: {name}",
                suggestions=["Unset LOG_LEVEL to use the default (WARNING)"],
                details={"LOG_LEVEL": name},
            )
