"""MBean collector: walks beans and attributes of one JVM and builds metric records."""

import logging
from typing import Any, Iterator, List

from ..config.models import ExporterConfig
from ..errors import AttributeReadError, BeanIntrospectionError, BeanNotFoundError
from ..jmx.naming import construct_description, extract_composite_items, metric_name
from ..jmx.values import AttributeDescriptor, BeanReference, CompositeValue, TabularValue, is_array
from ..utils.metrics import MetricRecord


# Attributes whose value types the consumer cannot represent in compat mode
COMPAT_EXCLUDED_ATTRIBUTES = ("BootClassPath",)
COMPAT_EXCLUDED_GC_ATTRIBUTE = "LastGcInfo"
COMPAT_GC_BEAN_MARKERS = ("MarkSweep", "Scavenge")


class MBeanCollector:
    """Collector for MBean attribute metrics of a single JVM connection."""

    def __init__(self, config: ExporterConfig, logger: logging.Logger):
        """
        Initialize MBean collector.

        Args:
            config: Resolved configuration (filters, compat mode, credentials)
            logger: Logger instance
        """
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)

    def collect_target(self, client, url: str) -> Iterator[MetricRecord]:
        """
        Connect to one target and yield its metric records.

        Args:
            client: JmxClient (or compatible) used to open the connection
            url: Full JMX service URL

        Yields:
            MetricRecord: Records in discovery order
        """
        self.logger.debug(f"Checking JVM {url}")
        with client.connect(url, self.config.credentials) as connection:
            yield from self.collect(connection)

    def collect(self, connection) -> Iterator[MetricRecord]:
        """
        Yield metric records for every configured filter.

        Args:
            connection: Open JmxConnection (or compatible)

        Yields:
            MetricRecord: Records in discovery order

        Raises:
            MalformedFilterError: If a filter is not a valid pattern
            JmxConnectionError: If the connection fails
        """
        for pattern in self.config.filters:
            try:
                yield from self._collect_filter(connection, pattern)
            except BeanNotFoundError as e:
                self.logger.debug(f"MBean vanished while processing filter '{pattern}': {e}")

    def _collect_filter(self, connection, pattern: str) -> Iterator[MetricRecord]:
        self.logger.debug(f"Querying MBeans with filter '{pattern}'.")

        bean_names = connection.query_bean_names(pattern)
        if not bean_names:
            self.logger.info(f"No MBean matches filter '{pattern}'!")
            return

        for bean_name in bean_names:
            try:
                yield from self._collect_bean(connection, bean_name)
            except BeanIntrospectionError as e:
                self.logger.debug(f"Skipping MBean {bean_name}: {e}")

    def _collect_bean(self, connection, bean_name: str) -> Iterator[MetricRecord]:
        self.logger.info(f"Processing MBean: {bean_name}")

        for attr in connection.get_attributes(bean_name):
            if not attr.readable:
                self.logger.debug(f"Skipping unreadable attribute: {attr.name}")
                continue

            self.logger.debug(f"Processing attribute: {attr.name}")

            if self.is_excluded(bean_name, attr):
                self.logger.debug(
                    f"Ignoring {attr.name} due to unsupported attr type: {attr.type}"
                )
                continue

            try:
                value = connection.read_attribute(bean_name, attr.name)
            except AttributeReadError as e:
                # Attribute not available or server side issue, ignore
                self.logger.debug(str(e))
                continue

            if value is None:
                self.logger.debug(f"Received null value for attribute: {attr.name}")
                continue

            yield from self.records_for_value(bean_name, attr.name, value)

    def is_excluded(self, bean_name: str, attr: AttributeDescriptor) -> bool:
        """
        Check the compat mode exclusion list.

        Returns:
            bool: True if the attribute must be skipped
        """
        if not self.config.compat_only:
            return False
        if attr.name in COMPAT_EXCLUDED_ATTRIBUTES:
            return True
        return attr.name == COMPAT_EXCLUDED_GC_ATTRIBUTE and any(
            marker in bean_name for marker in COMPAT_GC_BEAN_MARKERS
        )

    def records_for_value(self, bean_name: str, attr_name: str, value: Any) -> List[MetricRecord]:
        """
        Classify an attribute value and build its metric records.

        Args:
            bean_name: MBean name
            attr_name: Attribute name
            value: Converted attribute value

        Returns:
            List[MetricRecord]: Zero or more records
        """
        if value is None:
            return []
        if isinstance(value, (BeanReference, TabularValue)):
            return []
        if isinstance(value, CompositeValue):
            return [
                self._make_record(bean_name, attr_name, item)
                for item in extract_composite_items(value)
            ]
        if self.config.compat_only and is_array(value):
            return []
        return [self._make_record(bean_name, attr_name)]

    @staticmethod
    def _make_record(bean_name: str, attr_name: str, item=None) -> MetricRecord:
        return MetricRecord(
            name=metric_name(bean_name, attr_name, item),
            description=construct_description(bean_name, attr_name),
            bean_name=bean_name,
            attribute_name=attr_name,
            composite_item=item,
        )
