"""Metric record data structure."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MetricRecord:
    """One entry of the emitted metrics mapping."""

    name: str
    description: str
    bean_name: str
    attribute_name: str
    composite_item: Optional[str] = None

    def to_fields(self):
        """
        Return the JSON fields of the record in output order.

        Returns:
            list: (key, value) pairs; the composite item only when present
        """
        fields = [
            ("name", self.name),
            ("description", self.description),
            ("mBeanName", self.bean_name),
            ("mBeanAttributeName", self.attribute_name),
        ]
        if self.composite_item is not None:
            fields.append(("mBeanCompositeDataItem", self.composite_item))
        return fields
