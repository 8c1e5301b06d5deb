"""Shared pytest configuration and fixtures."""

import pytest

from mbean2json.config.models import ExporterConfig
from mbean2json.errors import BeanIntrospectionError, MalformedFilterError
from mbean2json.jmx.values import (
    AttributeDescriptor,
    BeanReference,
    CompositeValue,
    ScalarType,
    TabularValue,
)
from mbean2json.utils.logger import setup_logger


class FakeConnection:
    """In-memory stand-in for JmxConnection."""

    def __init__(self, beans, broken_beans=()):
        """
        Args:
            beans: {bean_name: [(AttributeDescriptor, value_or_exception), ...]}
            broken_beans: Bean names whose attribute listing fails
        """
        self.beans = beans
        self.broken_beans = set(broken_beans)
        self.queries = []
        self.reads = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def query_bean_names(self, pattern):
        self.queries.append(pattern)
        if pattern in ("", "*:*"):
            return list(self.beans)
        if ":" not in pattern:
            raise MalformedFilterError(pattern, "Key properties cannot be empty")
        domain, _, keys = pattern.partition(":")
        if keys == "*":
            return [name for name in self.beans if name.split(":", 1)[0] == domain]
        return [name for name in self.beans if name == pattern]

    def get_attributes(self, bean_name):
        if bean_name in self.broken_beans:
            raise BeanIntrospectionError(f"javax.management.IntrospectionException: {bean_name}")
        return [attr for attr, _ in self.beans[bean_name]]

    def read_attribute(self, bean_name, attr_name):
        self.reads.append((bean_name, attr_name))
        for attr, value in self.beans[bean_name]:
            if attr.name == attr_name:
                if isinstance(value, Exception):
                    raise value
                return value
        raise KeyError(attr_name)

    def close(self):
        self.closed = True


class FakeClient:
    """In-memory stand-in for JmxClient."""

    def __init__(self, connections):
        self.connections = connections
        self.connected = []
        self.jvm_started = False

    def start_jvm(self):
        self.jvm_started = True

    def connect(self, url, credentials=None):
        self.connected.append((url, credentials))
        connection = self.connections[url]
        if isinstance(connection, Exception):
            raise connection
        return connection


def memory_usage(used=10, committed=20, init=5, max_=100):
    """CompositeValue shaped like java.lang.management.MemoryUsage."""
    return CompositeValue(
        "java.lang.management.MemoryUsage",
        {"committed": committed, "init": init, "max": max_, "used": used},
    )


def platform_beans():
    """A small set of platform MBeans as a JVM would report them."""
    return {
        "java.lang:type=Memory": [
            (AttributeDescriptor("HeapMemoryUsage", "javax.management.openmbean.CompositeData"), memory_usage()),
            (AttributeDescriptor("ObjectPendingFinalizationCount", "int"), 0),
            (AttributeDescriptor("Verbose", "boolean"), False),
            (AttributeDescriptor("ObjectName", "javax.management.ObjectName"),
             BeanReference("java.lang:type=Memory")),
        ],
        "java.lang:type=Runtime": [
            (AttributeDescriptor("BootClassPath", "java.lang.String"), "/usr/lib/jvm/jre/lib/rt.jar"),
            (AttributeDescriptor("InputArguments", "[Ljava.lang.String;"), ["-Xmx1g"]),
            (AttributeDescriptor("SystemProperties", "javax.management.openmbean.TabularData"),
             TabularValue("java.util.Map<java.lang.String, java.lang.String>")),
            (AttributeDescriptor("Uptime", "long"), 12345),
        ],
        "java.lang:type=GarbageCollector,name=PS MarkSweep": [
            (AttributeDescriptor("CollectionCount", "long"), 3),
            (AttributeDescriptor("LastGcInfo", "javax.management.openmbean.CompositeData"),
             CompositeValue("sun.management.GcInfo", {"duration": 12, "id": 3})),
        ],
        "java.nio:type=BufferPool,name=direct": [
            (AttributeDescriptor("Count", "long"), 7),
            (AttributeDescriptor("Secret", "long", readable=False), 1),
        ],
    }


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def config():
    """Configuration matching every MBean, compat mode off."""
    return ExporterConfig.from_options(jvm_targets="localhost:9875", mbean_filter="*")


@pytest.fixture
def compat_config():
    """Configuration matching every MBean, compat mode on."""
    return ExporterConfig.from_options(
        jvm_targets="localhost:9875", mbean_filter="*", compat_only=True
    )


@pytest.fixture
def connection():
    """Fake connection serving the platform beans."""
    return FakeConnection(platform_beans())


@pytest.fixture
def make_connection():
    """Factory for fake connections with custom beans."""
    return FakeConnection


@pytest.fixture
def make_client():
    """Factory for fake clients keyed by service URL."""
    return FakeClient


@pytest.fixture
def scalar_type():
    return ScalarType("java.lang.Long")


@pytest.fixture
def beans():
    """Platform MBeans keyed by name."""
    return platform_beans()
