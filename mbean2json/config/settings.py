"""Environment settings and validation."""

import os
from typing import Mapping, Optional

from ..errors import ConfigurationError
from .models import Credentials


JMX_CONNECTOR_CREDENTIALS = "JMX_CONNECTOR_CREDENTIALS"


class Settings:
    """Application settings from environment variables."""

    @staticmethod
    def get(
        key: str,
        default: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set
            environ: Mapping to read instead of os.environ

        Returns:
            str: Environment variable value
        """
        environ = os.environ if environ is None else environ
        value = environ.get(key, default)
        return value or ""

    @staticmethod
    def credentials(environ: Optional[Mapping[str, str]] = None) -> Optional[Credentials]:
        """
        Read JMX credentials from JMX_CONNECTOR_CREDENTIALS.

        The value is "username:password", split on the first colon.

        Returns:
            Optional[Credentials]: None when the variable is not set

        Raises:
            ConfigurationError: If the value has no colon
        """
        environ = os.environ if environ is None else environ
        value = environ.get(JMX_CONNECTOR_CREDENTIALS)
        if value is None:
            return None

        username, sep, password = value.partition(":")
        if not sep:
            raise ConfigurationError(
                "Malformed environment variable (expected username:password): "
                f"'{JMX_CONNECTOR_CREDENTIALS}'"
            )
        return Credentials(username=username, password=password)

    @staticmethod
    def log_level(environ: Optional[Mapping[str, str]] = None) -> str:
        """Log level from LOG_LEVEL, WARNING when unset."""
        return Settings.get("LOG_LEVEL", "WARNING", environ=environ).upper()
