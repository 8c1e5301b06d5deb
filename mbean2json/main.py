"""Main application entry point for MBean2JSON."""

import argparse
import asyncio
import logging
import os
import sys
import time
from typing import List, Optional, TextIO

from .collectors.mbean_collector import MBeanCollector
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .config.settings import JMX_CONNECTOR_CREDENTIALS, Settings
from .errors import ConfigurationError, JmxAuthenticationError, MBean2JSONError
from .jmx.client import JmxClient
from .utils.json_writer import MetricsDocumentWriter
from .utils.logger import setup_logger
from .utils.metrics import MetricRecord


class MBean2JSONApp:
    """
    Main MBean2JSON application.

    Writes the metrics document for every configured JVM target, either one
    target at a time or with targets collected concurrently.
    """

    def __init__(
        self,
        config: ExporterConfig,
        client=None,
        stream: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize application.

        Args:
            config: Resolved configuration
            client: JmxClient (or compatible); created when None
            stream: Output stream for the document (default: sys.stdout)
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or setup_logger("mbean2json")
        self.client = client or JmxClient(self.logger)
        self.writer = MetricsDocumentWriter(stream or sys.stdout)
        self.collector = MBeanCollector(config, self.logger)

        if config.targets:
            self.logger.info(f"Using JVM targets: {config.targets}")
        else:
            self.logger.warning("No JVM targets specified!")
        self.logger.info(f"Using MBean filters: {config.filters}")

    def run(self) -> int:
        """
        Collect every target in order, streaming records as they arrive.

        Returns:
            int: Number of records written

        Raises:
            MBean2JSONError: On any fatal error; output stops where it failed
        """
        start_time = time.time()
        self.writer.begin()

        for url in self.config.targets:
            self.writer.write_all(self.collector.collect_target(self.client, url))

        self.writer.finish()
        self._log_summary(start_time)
        return self.writer.count

    async def run_parallel(self) -> int:
        """
        Collect all targets concurrently and write them in target order.

        Each target's records are buffered so the document is assembled in
        configured target order. The first failing target aborts the run.

        Returns:
            int: Number of records written
        """
        start_time = time.time()

        if self.config.targets:
            # JVM must be up before worker threads attach to it
            self.client.start_jvm()

        self.writer.begin()

        tasks = [
            asyncio.to_thread(self._collect_buffered, url)
            for url in self.config.targets
        ]
        results = await asyncio.gather(*tasks)

        for records in results:
            self.writer.write_all(records)

        self.writer.finish()
        self._log_summary(start_time)
        return self.writer.count

    def _collect_buffered(self, url: str) -> List[MetricRecord]:
        return list(self.collector.collect_target(self.client, url))

    def _log_summary(self, start_time: float) -> None:
        duration = time.time() - start_time
        self.logger.info(
            f"All JVMs checked in {duration:.3f}s.",
            extra={"targets": len(self.config.targets), "records": self.writer.count}
        )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description='Generate a JSON metrics mapping from JVM MBeans',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Local JVM with default filters
  mbean2json --jvm-targets localhost:9875

  # Every MBean, compatible value types only
  mbean2json --mbean-filter '*' --compat-only

  # Several JVMs collected concurrently
  mbean2json --jvm-targets host1:9875,host2:9875 --parallel

Environment variable '{JMX_CONNECTOR_CREDENTIALS}' may hold username:password.
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to configuration file (default: ./mbean2json.properties if present)'
    )

    parser.add_argument(
        '--jvm-targets',
        default=None,
        help='Comma separated host:port pairs or JMX service URLs'
    )

    parser.add_argument(
        '--mbean-filter',
        default=None,
        help="'!' separated MBean name patterns, '*' for all MBeans"
    )

    parser.add_argument(
        '--compat-only',
        action='store_true',
        help='Skip arrays and attributes with known unsupported value types'
    )

    parser.add_argument(
        '--parallel',
        action='store_true',
        help='Collect JVM targets concurrently'
    )

    parser.add_argument(
        '--jvm-path',
        default=os.getenv('JVM_PATH'),
        help='Path to the JVM shared library used for JMX (default: JVM_PATH env var or autodetect)'
    )

    parser.add_argument(
        '--log-level',
        default=Settings.log_level(),
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING or LOG_LEVEL env var)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point.

    Parses command-line arguments, writes the metrics document to stdout and
    exits non-zero on any fatal error.
    """
    args = build_parser().parse_args(argv)
    logger = setup_logger("mbean2json", args.log_level)

    try:
        config = ConfigLoader.load(
            config_path=args.config,
            jvm_targets=args.jvm_targets,
            mbean_filter=args.mbean_filter,
            compat_only=args.compat_only,
            parallel=args.parallel,
        )
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    app = MBean2JSONApp(config, JmxClient(logger, args.jvm_path), sys.stdout, logger)

    try:
        if config.parallel:
            asyncio.run(app.run_parallel())
        else:
            app.run()

    except JmxAuthenticationError as e:
        logger.error(str(e))
        logger.info(
            f"Environment variable '{JMX_CONNECTOR_CREDENTIALS}' may be used to hold username:password."
        )
        sys.exit(1)

    except MBean2JSONError as e:
        logger.error(str(e))
        sys.exit(1)

    except Exception as e:
        # Probably something serious
        logger.error(
            f"Unexpected failure: {e}",
            exc_info=True,
            extra={"error_type": type(e).__name__}
        )
        sys.exit(1)

    logger.info("Exiting.")


if __name__ == '__main__':
    main()
