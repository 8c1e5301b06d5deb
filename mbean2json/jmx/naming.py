"""Metric name and description synthesis from MBean and attribute names."""

from typing import List, Optional

from .values import CompositeValue, ScalarType, TabularValue


# Ordered (old, new) replacements applied to the MBean name
_BEAN_REPLACEMENTS = (
    (":type=", "."),
    (" ", "_"),
    (",name=Compressed_Class_Space", ".ccs."),
    (",name=Code_Cache", ".cc."),
    (".MBeanServerDelegate", ""),
    (",name=", "."),
)

# Platform domains dropped from the prefix
_DOMAIN_SHORTCUTS = (".lang", ".nio")


def construct_sane_name(mbean_name: str, attr_name: str) -> str:
    """
    Construct a sanitized, lowercase, dotted metric name.

    Example:
        "java.lang:type=Memory" + "HeapMemoryUsage" -> "java.memory.heapmemoryusage"

    Args:
        mbean_name: MBean object name in string form
        attr_name: Attribute name

    Returns:
        str: Metric name without any composite item suffix
    """
    base = mbean_name
    for old, new in _BEAN_REPLACEMENTS:
        base = base.replace(old, new)

    if not base.endswith("."):
        base = base + "."

    for shortcut in _DOMAIN_SHORTCUTS:
        base = base.replace(shortcut, "")

    name = attr_name.replace(" ", "_").replace("CollectionUsage", "CU_")
    return (base + name).lower()


def construct_description(mbean_name: str, attr_name: str) -> str:
    """Construct a human readable metric description."""
    return f"{mbean_name} / {attr_name}"


def metric_name(mbean_name: str, attr_name: str, item: Optional[str] = None) -> str:
    """
    Construct the full metric name, appending a composite item if given.

    The item is appended after lowercasing, so its case is kept.
    """
    name = construct_sane_name(mbean_name, attr_name)
    if item is not None:
        name = f"{name}[{item}]"
    return name


def extract_composite_items(value: CompositeValue) -> List[Optional[str]]:
    """
    Flatten a composite value into the item names to emit.

    Nested composites contribute their leaf keys to the same flat list. A
    ScalarType item contributes None (the attribute itself, unqualified).
    A tabular item anywhere discards every item of the attribute.

    Args:
        value: Composite attribute value

    Returns:
        List[Optional[str]]: Unique item names in visiting order
    """
    items: List[Optional[str]] = []
    if not _collect_items(value, items):
        return []
    return items


def _collect_items(value: CompositeValue, items: List[Optional[str]]) -> bool:
    """Visit composite fields; return False when a tabular field is found."""
    for key in value.keys():
        item = value.get(key)
        if isinstance(item, TabularValue):
            return False
        elif isinstance(item, CompositeValue):
            if not _collect_items(item, items):
                return False
        elif isinstance(item, ScalarType):
            _add_unique(items, None)
        else:
            _add_unique(items, key)
    return True


def _add_unique(items: List[Optional[str]], item: Optional[str]) -> None:
    if item not in items:
        items.append(item)
