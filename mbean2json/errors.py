"""Exception hierarchy for MBean2JSON."""


class MBean2JSONError(Exception):
    """Base class for all MBean2JSON errors."""


class ConfigurationError(MBean2JSONError):
    """Invalid targets, missing config file or malformed credentials."""


class MalformedFilterError(MBean2JSONError):
    """MBean filter is not a valid object name pattern."""

    def __init__(self, pattern: str, reason: str = ""):
        self.pattern = pattern
        message = f"Malformed MBean filter: {pattern}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class JmxConnectionError(MBean2JSONError):
    """JVM target could not be reached or the connection broke."""


class JmxAuthenticationError(JmxConnectionError):
    """JVM target rejected the supplied credentials."""


class BeanIntrospectionError(MBean2JSONError):
    """Attribute list of a single MBean could not be retrieved."""


class BeanNotFoundError(MBean2JSONError):
    """MBean was unregistered between query and inspection."""


class AttributeReadError(MBean2JSONError):
    """Single attribute value could not be read; safe to skip."""
