"""Pydantic configuration models for MBean2JSON."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ConfigurationError


DEFAULT_CONFIG = "mbean2json.properties"
DEFAULT_JVM_TARGETS = "localhost:9875"
DEFAULT_MBEAN_FILTER = "java.lang:*!java.nio:*"
DEFAULT_COMPAT_ONLY = False

JMX_URL_TEMPLATE = "service:jmx:rmi:///jndi/rmi://{host}:{port}/jmxrmi"


def normalize_target(target: str) -> str:
    """
    Expand a host:port target into a full JMX service URL.

    Targets containing "/" are taken as service URLs already.

    Raises:
        ConfigurationError: If a host:port target has no port
    """
    if "/" in target:
        return target

    parts = target.split(":")
    if len(parts) < 2 or not parts[1]:
        raise ConfigurationError(f"Missing port in JVM target '{target}'")
    return JMX_URL_TEMPLATE.format(host=parts[0], port=parts[1])


def split_targets(jvm_targets: Optional[str]) -> List[str]:
    """Split a comma separated target list, dropping blank entries."""
    if not jvm_targets:
        return []
    return [t.strip() for t in jvm_targets.split(",") if t.strip()]


def split_filters(mbean_filter: str) -> List[str]:
    """
    Split a "!" separated filter string.

    A lone "*" means every MBean and becomes the empty pattern.
    """
    if mbean_filter == "*":
        mbean_filter = ""

    filters = mbean_filter.split("!")
    # Trailing empty tokens are dropped
    while len(filters) > 1 and filters[-1] == "":
        filters.pop()
    return filters


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class Credentials(BaseModel):
    """JMX connector credentials."""
    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)


class ExporterConfig(BaseModel):
    """Resolved, immutable configuration for one MBean2JSON run."""
    model_config = ConfigDict(frozen=True)

    targets: List[str] = Field(default_factory=list)
    filters: List[str] = Field(default_factory=lambda: [""])
    compat_only: bool = DEFAULT_COMPAT_ONLY
    parallel: bool = False
    credentials: Optional[Credentials] = None

    @field_validator('targets')
    @classmethod
    def normalize_targets(cls, v: List[str]) -> List[str]:
        """Expand host:port targets and drop duplicates."""
        return _unique([normalize_target(target) for target in v])

    @field_validator('filters')
    @classmethod
    def unique_filters(cls, v: List[str]) -> List[str]:
        """Drop duplicate filters, keeping the first occurrence."""
        return _unique(v)

    @classmethod
    def from_options(
        cls,
        jvm_targets: Optional[str] = DEFAULT_JVM_TARGETS,
        mbean_filter: str = DEFAULT_MBEAN_FILTER,
        compat_only: bool = DEFAULT_COMPAT_ONLY,
        parallel: bool = False,
        credentials: Optional[Credentials] = None
    ) -> "ExporterConfig":
        """
        Build configuration from raw option strings.

        Args:
            jvm_targets: Comma separated targets (host:port or service URLs)
            mbean_filter: "!" separated object name patterns
            compat_only: Restrict output to compatible value types
            parallel: Collect targets concurrently
            credentials: Optional JMX credentials

        Returns:
            ExporterConfig: Validated configuration

        Raises:
            ConfigurationError: If a target is malformed
        """
        return cls(
            targets=[normalize_target(target) for target in split_targets(jvm_targets)],
            filters=split_filters(mbean_filter),
            compat_only=compat_only,
            parallel=parallel,
            credentials=credentials,
        )
