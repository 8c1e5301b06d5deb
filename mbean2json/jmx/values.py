"""Python model of JMX attribute values and descriptors."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class AttributeDescriptor:
    """Attribute metadata as reported by MBeanInfo."""

    name: str
    type: str = ""
    readable: bool = True


@dataclass(frozen=True)
class ScalarType:
    """A simple open type descriptor (e.g. java.lang.Long) used as a value."""

    type_name: str


@dataclass(frozen=True)
class BeanReference:
    """An ObjectName value pointing at another MBean."""

    object_name: str


@dataclass(frozen=True)
class TabularValue:
    """TabularData value; rows are never inspected."""

    type_name: str = ""


@dataclass
class CompositeValue:
    """CompositeData value with its items in declared key order."""

    type_name: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)

    def keys(self):
        return self.fields.keys()

    def get(self, key: str) -> Any:
        return self.fields.get(key)


def is_array(value: Any) -> bool:
    """Return True for converted Java arrays."""
    return isinstance(value, (list, tuple))
