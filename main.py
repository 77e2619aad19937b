#!/usr/bin/env python3
"""
Command line entry point for the crawler.
"""

import asyncio
import argparse
import signal
import sys
import yaml
from pathlib import Path
from typing import Optional

from simplecrawl import __version__
from simplecrawl.crawler.driver import Crawler
from simplecrawl.crawler.limits import CrawlResult
from simplecrawl.utils.config import Config, ConfigError, load_config
from simplecrawl.utils.logger import get_crawler_logger, log_system_info, setup_logging
from simplecrawl.utils.monitoring import initialize_monitoring


class CrawlerApp:
    """Main application class for the crawler."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.crawler: Optional[Crawler] = None
        self.logger = get_crawler_logger()
        self._shutdown_event: Optional[asyncio.Event] = None

    def setup_logging(self, config: Config):
        """Setup logging configuration."""
        self.logger = get_crawler_logger(logger=setup_logging(config.logging, verbose=self.verbose))
        log_system_info(self.logger)

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            self._shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Not supported on Windows event loops; Ctrl+C still raises KeyboardInterrupt
                pass

    async def run(self, config: Config) -> Optional[CrawlResult]:
        """Run the crawler. Returns None if the crawl was interrupted."""
        self._shutdown_event = asyncio.Event()
        self.setup_signal_handlers()

        monitor = initialize_monitoring(
            config.monitoring.metrics_enabled,
            config.monitoring.prometheus_port
        )
        monitor.metrics.start_prometheus_server()

        self.crawler = Crawler(config, logger=self.logger, monitor=monitor)

        crawl_task = asyncio.create_task(self.crawler.crawl())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        done, pending = await asyncio.wait(
            [crawl_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if crawl_task not in done:
            self.logger.info("Shutdown requested, crawl stopped")
            return None

        self.logger.debug(f"Monitoring summary: {monitor.get_summary()}")
        return crawl_task.result()


def format_result(result: CrawlResult) -> str:
    lines = []
    if result.terminated:
        lines.append(f"Crawl stopped: {result.reason}")
    else:
        lines.append("Crawl complete")
    lines.append(f"Total pages: {result.total_pages}")
    lines.append(f"Total traffic: {result.total_traffic} bytes")
    lines.append(f"Links followed: {result.links_followed}")
    return "\n".join(lines)


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Crawl a website from its root URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  simplecrawl config.yaml        # Crawl quietly, print the final report
  simplecrawl config.yaml -v     # Print every URL as it is crawled
        """
    )

    parser.add_argument(
        'config',
        help='Path to the YAML configuration file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print colourised progress lines'
    )

    args = parser.parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        return 1

    try:
        config = load_config(args.config)
    except (ConfigError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}")
        return 1

    app = CrawlerApp(verbose=args.verbose)
    app.setup_logging(config)
    app.logger.debug(f"simplecrawl {__version__}")

    try:
        result = asyncio.run(app.run(config))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        app.logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"Fatal error: {e}")
        return 1

    if result is None:
        return 1

    print(format_result(result))
    return 0


if __name__ == '__main__':
    sys.exit(main())
