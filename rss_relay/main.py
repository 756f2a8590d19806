"""
Main entry point for RSS Relay.

Loads the configuration, wires the components together and runs the
scheduler until SIGINT or SIGTERM.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from urllib.parse import urlparse

import coloredlogs

from rss_relay.config import ConfigLoadError, ConfigStore
from rss_relay.rss_parser import FeedParser
from rss_relay.scheduler import Scheduler
from rss_relay.synchronizer import FETCH_TIMEOUT, FeedSynchronizer
from rss_relay.webhook import WebhookNotifier

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


class RSSRelay:
    """
    Main RSS relay application.

    Owns the configuration store, the HTTP clients and the scheduler.
    """

    def __init__(self, config_path: str | Path, debug: bool = False):
        """
        Initialize the relay.

        Parameters
        ----------
        config_path : str | Path
            Path to the YAML configuration file.
        debug : bool
            If True, log webhook payloads and responses.

        Raises
        ------
        ConfigLoadError
            If the configuration cannot be loaded.
        """
        self.store = ConfigStore.load(config_path)
        settings = self.store.settings

        if settings.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(settings.proxy))

        self.parser = FeedParser(
            timeout=int(FETCH_TIMEOUT),
            user_agent=settings.user_agent,
            proxy_url=settings.proxy,
        )
        self.notifier = WebhookNotifier(
            user_agent=settings.user_agent,
            proxy_url=settings.proxy,
            debug=debug,
        )
        self.synchronizer = FeedSynchronizer(
            self.parser,
            self.notifier,
            branding=settings.branding,
        )
        self.scheduler = Scheduler(self.store, self.synchronizer)
        self.max_concurrency = settings.max_concurrency

    async def run(self) -> None:
        """Run until :meth:`stop` is called."""
        logger.info("RSS Relay starting")
        logger.info("maxConcurrency: %d", self.max_concurrency)
        await self.scheduler.run()

    def stop(self) -> None:
        """Request a graceful shutdown."""
        self.scheduler.shutdown()

    async def close(self) -> None:
        """Close the HTTP clients."""
        await self.parser.close()
        await self.notifier.close()
        logger.info("RSS Relay stopped")


def setup_logging(debug: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    debug : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if debug else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("charset_normalizer").setLevel(logging.WARNING)

    if debug:
        logger.debug("Debug mode enabled")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Relay new RSS/Atom entries to webhooks",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-config",
        "--config",
        default="config.yml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-debug",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main() -> None:
    """Main entry point."""
    args = parse_args()

    setup_logging(args.debug)

    try:
        relay = RSSRelay(args.config, debug=args.debug)
    except ConfigLoadError as e:
        logger.error("%s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        relay.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(relay.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(relay.close())
        loop.close()


if __name__ == "__main__":
    main()
