"""JMX client backed by an in-process JVM through JPype."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

try:
    import jpype
except ImportError:
    jpype = None

from ..config.models import Credentials
from ..errors import (
    AttributeReadError,
    BeanIntrospectionError,
    BeanNotFoundError,
    JmxAuthenticationError,
    JmxConnectionError,
    MalformedFilterError,
)
from .values import AttributeDescriptor, BeanReference, CompositeValue, ScalarType, TabularValue


@dataclass(frozen=True)
class JavaTypes:
    """Java classes used by the client, resolved once the JVM is running."""

    ObjectName: Any
    HashMap: Any
    JMXServiceURL: Any
    JMXConnectorFactory: Any
    CREDENTIALS: Any
    CompositeData: Any
    TabularData: Any
    SimpleType: Any
    String: Any
    Boolean: Any
    Number: Any
    integral: Tuple[Any, ...]
    JArray: Any
    JStringArray: Any
    # Exceptions
    MalformedObjectNameException: Any
    InstanceNotFoundException: Any
    IntrospectionException: Any
    ReflectionException: Any
    SecurityException: Any
    IOException: Any
    recoverable_read_errors: Tuple[Any, ...]

    @classmethod
    def load(cls) -> "JavaTypes":
        """Resolve the Java classes. The JVM must already be started."""
        JClass = jpype.JClass
        return cls(
            ObjectName=JClass("javax.management.ObjectName"),
            HashMap=JClass("java.util.HashMap"),
            JMXServiceURL=JClass("javax.management.remote.JMXServiceURL"),
            JMXConnectorFactory=JClass("javax.management.remote.JMXConnectorFactory"),
            CREDENTIALS=JClass("javax.management.remote.JMXConnector").CREDENTIALS,
            CompositeData=JClass("javax.management.openmbean.CompositeData"),
            TabularData=JClass("javax.management.openmbean.TabularData"),
            SimpleType=JClass("javax.management.openmbean.SimpleType"),
            String=JClass("java.lang.String"),
            Boolean=JClass("java.lang.Boolean"),
            Number=JClass("java.lang.Number"),
            integral=(
                JClass("java.lang.Byte"),
                JClass("java.lang.Short"),
                JClass("java.lang.Integer"),
                JClass("java.lang.Long"),
            ),
            JArray=jpype.JArray,
            JStringArray=jpype.JArray(jpype.JString),
            MalformedObjectNameException=JClass("javax.management.MalformedObjectNameException"),
            InstanceNotFoundException=JClass("javax.management.InstanceNotFoundException"),
            IntrospectionException=JClass("javax.management.IntrospectionException"),
            ReflectionException=JClass("javax.management.ReflectionException"),
            SecurityException=JClass("java.lang.SecurityException"),
            IOException=JClass("java.io.IOException"),
            recoverable_read_errors=(
                JClass("javax.management.AttributeNotFoundException"),
                JClass("javax.management.MBeanException"),
                JClass("java.io.IOException"),
                JClass("java.lang.NumberFormatException"),
                JClass("javax.management.RuntimeMBeanException"),
            ),
        )


def to_python(value: Any, java: JavaTypes) -> Any:
    """
    Convert a Java attribute value into the Python value model.

    Args:
        value: Value returned by getAttribute or CompositeData.get
        java: Resolved Java classes

    Returns:
        Converted value; unknown Java objects are returned unchanged
    """
    if value is None:
        return None
    if isinstance(value, java.ObjectName):
        return BeanReference(str(value.toString()))
    if isinstance(value, java.TabularData):
        return TabularValue(str(value.getTabularType().getTypeName()))
    if isinstance(value, java.CompositeData):
        composite_type = value.getCompositeType()
        fields = {
            str(key): to_python(value.get(key), java)
            for key in composite_type.keySet()
        }
        return CompositeValue(str(composite_type.getTypeName()), fields)
    if isinstance(value, java.SimpleType):
        return ScalarType(str(value.getTypeName()))
    if isinstance(value, java.JArray):
        return [to_python(item, java) for item in value]
    if isinstance(value, java.String):
        return str(value)
    if isinstance(value, java.Boolean):
        return bool(value.booleanValue())
    if isinstance(value, java.integral):
        return int(value.longValue())
    if isinstance(value, java.Number):
        return float(value.doubleValue())
    return value


class JmxConnection:
    """
    An open MBean server connection.

    Translates Java exceptions into MBean2JSON errors so callers never deal
    with JPype types.
    """

    def __init__(self, url: str, connector: Any, connection: Any, java: JavaTypes, logger: logging.Logger):
        """
        Initialize connection wrapper.

        Args:
            url: JMX service URL this connection was opened for
            connector: javax.management.remote.JMXConnector
            connection: javax.management.MBeanServerConnection
            java: Resolved Java classes
            logger: Logger instance
        """
        self.url = url
        self._connector = connector
        self._connection = connection
        self._java = java
        self.logger = logger
        self._object_names: Dict[str, Any] = {}

    def __enter__(self) -> "JmxConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def query_bean_names(self, pattern: str) -> List[str]:
        """
        Query MBean names matching an object name pattern.

        Args:
            pattern: Object name pattern; empty string matches everything

        Returns:
            List[str]: Matching MBean names

        Raises:
            MalformedFilterError: If the pattern is not a valid object name
            JmxConnectionError: If the server cannot be reached
        """
        java = self._java
        try:
            query = java.ObjectName(pattern)
        except java.MalformedObjectNameException as e:
            raise MalformedFilterError(pattern, str(e.getMessage())) from e

        try:
            names = self._connection.queryNames(query, None)
        except java.IOException as e:
            raise JmxConnectionError(f"Querying {self.url} failed: {e}") from e

        result = []
        for object_name in names:
            name = str(object_name.toString())
            self._object_names[name] = object_name
            result.append(name)
        return result

    def get_attributes(self, bean_name: str) -> List[AttributeDescriptor]:
        """
        List attribute descriptors of an MBean.

        Raises:
            BeanIntrospectionError: If MBeanInfo cannot be built
            BeanNotFoundError: If the MBean is no longer registered
            JmxConnectionError: If the server cannot be reached
        """
        java = self._java
        try:
            info = self._connection.getMBeanInfo(self._object_name(bean_name))
        except (java.IntrospectionException, java.ReflectionException) as e:
            raise BeanIntrospectionError(str(e)) from e
        except java.InstanceNotFoundException as e:
            raise BeanNotFoundError(str(e)) from e
        except java.IOException as e:
            raise JmxConnectionError(f"Reading MBeanInfo of {bean_name} failed: {e}") from e

        return [
            AttributeDescriptor(
                name=str(attr.getName()),
                type=str(attr.getType()),
                readable=bool(attr.isReadable()),
            )
            for attr in info.getAttributes()
        ]

    def read_attribute(self, bean_name: str, attr_name: str) -> Any:
        """
        Read and convert one attribute value.

        Raises:
            AttributeReadError: Recoverable failure reading this attribute
            BeanIntrospectionError: Reflection failure on the MBean
            BeanNotFoundError: If the MBean is no longer registered
        """
        java = self._java
        try:
            value = self._connection.getAttribute(self._object_name(bean_name), attr_name)
        except java.recoverable_read_errors as e:
            raise AttributeReadError(str(e)) from e
        except java.ReflectionException as e:
            raise BeanIntrospectionError(str(e)) from e
        except java.InstanceNotFoundException as e:
            raise BeanNotFoundError(str(e)) from e

        return to_python(value, java)

    def close(self) -> None:
        """Close the underlying connector."""
        if self._connector is None:
            return
        try:
            self._connector.close()
            self.logger.debug(f"Connection to {self.url} closed")
        except self._java.IOException as e:
            self.logger.warning(f"Error closing connection to {self.url}: {e}")
        finally:
            self._connector = None

    def _object_name(self, bean_name: str) -> Any:
        object_name = self._object_names.get(bean_name)
        if object_name is None:
            object_name = self._java.ObjectName(bean_name)
            self._object_names[bean_name] = object_name
        return object_name


class JmxClient:
    """Opens JMX connections; starts the JVM on first use."""

    def __init__(self, logger: logging.Logger, jvm_path: Optional[str] = None):
        """
        Initialize JMX client.

        Args:
            logger: Logger instance
            jvm_path: Path to libjvm; JPype's default lookup when None
        """
        self.logger = logger.getChild(self.__class__.__name__)
        self.jvm_path = jvm_path
        self._java: Optional[JavaTypes] = None

    @staticmethod
    def is_available() -> bool:
        """
        Check if JPype is available.

        Returns:
            bool: True if JPype is installed
        """
        return jpype is not None

    def start_jvm(self) -> JavaTypes:
        """
        Start the JVM once per process and resolve Java classes.

        Returns:
            JavaTypes: Resolved Java classes

        Raises:
            ImportError: If JPype is not installed
        """
        if self._java is not None:
            return self._java

        if not self.is_available():
            self.logger.error("JPype1 library not installed")
            raise ImportError("JPype1 library required for JMX connections")

        if not jpype.isJVMStarted():
            jvm_path = self.jvm_path or jpype.getDefaultJVMPath()
            self.logger.debug(f"Starting JVM: {jvm_path}")
            jpype.startJVM(jvm_path, convertStrings=False)

        self._java = JavaTypes.load()
        return self._java

    def connect(self, url: str, credentials: Optional[Credentials] = None) -> JmxConnection:
        """
        Connect to a JMX service URL.

        Args:
            url: Full JMX service URL
            credentials: Optional username and password

        Returns:
            JmxConnection: Open connection

        Raises:
            JmxAuthenticationError: If the target rejects the credentials
            JmxConnectionError: If the target cannot be reached
        """
        java = self.start_jvm()

        env = java.HashMap()
        if credentials is not None:
            env.put(java.CREDENTIALS, java.JStringArray([credentials.username, credentials.password]))

        self.logger.debug(f"Connecting to {url}")
        try:
            connector = java.JMXConnectorFactory.connect(java.JMXServiceURL(url), env)
            connection = connector.getMBeanServerConnection()
        except java.SecurityException as e:
            raise JmxAuthenticationError(f"{e.getMessage()} for: {url}") from e
        except java.IOException as e:
            raise JmxConnectionError(f"Failed to connect to {url}: {e}") from e

        self.logger.debug(f"Successfully connected to {url}")
        return JmxConnection(url, connector, connection, java, self.logger)
