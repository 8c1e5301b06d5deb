"""Configuration loader layering defaults, config file and command line."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import javaproperties

from ..errors import ConfigurationError
from .models import (
    DEFAULT_COMPAT_ONLY,
    DEFAULT_CONFIG,
    DEFAULT_JVM_TARGETS,
    DEFAULT_MBEAN_FILTER,
    ExporterConfig,
)
from .settings import Settings


PROPERTY_JVM_TARGETS = "mbean2json.jvmtargets"
PROPERTY_MBEAN_FILTER = "mbean2json.mbeanfilter"


class ConfigLoader:
    """Load and validate MBean2JSON configuration."""

    @staticmethod
    def defaults() -> Dict[str, Any]:
        """Built-in option defaults."""
        return {
            "jvm_targets": DEFAULT_JVM_TARGETS,
            "mbean_filter": DEFAULT_MBEAN_FILTER,
            "compat_only": DEFAULT_COMPAT_ONLY,
        }

    @staticmethod
    def load(
        config_path: Optional[str] = None,
        jvm_targets: Optional[str] = None,
        mbean_filter: Optional[str] = None,
        compat_only: bool = False,
        parallel: bool = False,
        environ: Optional[Mapping[str, str]] = None
    ) -> ExporterConfig:
        """
        Resolve the run configuration.

        Sources are layered as defaults, then the config file, then command
        line options. The config file is read when named explicitly or when
        the default file exists in the working directory.

        Args:
            config_path: Config file given on the command line, if any
            jvm_targets: --jvm-targets value, if given
            mbean_filter: --mbean-filter value, if given
            compat_only: --compat-only flag
            parallel: --parallel flag
            environ: Mapping to read instead of os.environ

        Returns:
            ExporterConfig: Validated configuration

        Raises:
            ConfigurationError: If the config file, a target or the
                credentials variable is invalid
        """
        options = ConfigLoader.defaults()

        path = config_path or DEFAULT_CONFIG
        if config_path is not None or Path(path).is_file():
            options.update(ConfigLoader.load_from_file(path))

        # Command line always overrides config file
        if jvm_targets is not None:
            options["jvm_targets"] = jvm_targets
        if mbean_filter is not None:
            options["mbean_filter"] = mbean_filter
        if compat_only:
            options["compat_only"] = True

        return ExporterConfig.from_options(
            jvm_targets=options["jvm_targets"],
            mbean_filter=options["mbean_filter"],
            compat_only=options["compat_only"],
            parallel=parallel,
            credentials=Settings.credentials(environ),
        )

    @staticmethod
    def load_from_file(config_path: str) -> Dict[str, Any]:
        """
        Read options from a Java properties file.

        Options missing from the file fall back to the built-in defaults.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dict[str, Any]: Options keyed like ConfigLoader.defaults()

        Raises:
            ConfigurationError: If the file is missing or cannot be parsed
        """
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        # Binary mode: decoded as ISO-8859-1 like java.util.Properties.load(InputStream)
        try:
            with open(config_file, 'rb') as f:
                props = javaproperties.load(f)
        except ValueError as e:
            raise ConfigurationError(
                f"Failed to parse configuration file {config_path}: {e}"
            ) from e

        options = ConfigLoader.defaults()
        options["jvm_targets"] = props.get(PROPERTY_JVM_TARGETS, DEFAULT_JVM_TARGETS)
        options["mbean_filter"] = props.get(PROPERTY_MBEAN_FILTER, DEFAULT_MBEAN_FILTER)
        return options
