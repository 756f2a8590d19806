"""
Feed synchronization.

Fetches one feed, compares it against the feed's persisted watermarks and
dispatches every new entry to each of the feed's webhooks.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from rss_relay.config import BrandingConfig, FeedConfig
from rss_relay.notifier import Notifier
from rss_relay.renderer import render_entry, render_message
from rss_relay.rss_parser import FeedDocument, FeedEntry, FeedParser, FetchError
from rss_relay.sanitizer import (
    DescriptionParseError,
    extract_first_image,
    sanitize_description,
)

logger = logging.getLogger(__name__)

# Deadline for fetching and parsing one feed, in seconds
FETCH_TIMEOUT = 8.0

# Pause after every webhook call, in seconds
SEND_DELAY = 0.1


class SyncOutcome(str, Enum):
    """Terminal state of one synchronization."""

    SKIPPED = "skipped"
    FETCH_FAILED = "fetch_failed"
    NO_UPDATE = "no_update"
    DONE = "done"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_due(feed: FeedConfig, now: datetime) -> bool:
    """Return True if the feed's interval has elapsed since its last run."""
    return now - feed.last_run >= feed.periode


class FeedSynchronizer:
    """
    Runs the synchronization state machine for one feed at a time.

    The caller must hold exclusive access to the ``FeedConfig`` passed to
    :meth:`sync`; its watermarks are updated in place.
    """

    def __init__(
        self,
        parser: FeedParser,
        notifier: Notifier,
        branding: BrandingConfig | None = None,
        fetch_timeout: float = FETCH_TIMEOUT,
        send_delay: float = SEND_DELAY,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the synchronizer.

        Parameters
        ----------
        parser : FeedParser
            Fetches and parses feed documents.
        notifier : Notifier
            Delivers rendered messages.
        branding : BrandingConfig | None
            Thumbnail, author and identity added to every message.
        fetch_timeout : float
            Deadline in seconds for fetching and parsing a feed.
        send_delay : float
            Pause in seconds after each send attempt.
        clock : Callable[[], datetime]
            Source of the current UTC time.
        """
        self.parser = parser
        self.notifier = notifier
        self.branding = branding or BrandingConfig()
        self.fetch_timeout = fetch_timeout
        self.send_delay = send_delay
        self.clock = clock

    async def sync(
        self, name: str, feed: FeedConfig, shutdown: asyncio.Event
    ) -> SyncOutcome:
        """
        Synchronize one feed.

        Parameters
        ----------
        name : str
            Name of the feed.
        feed : FeedConfig
            Feed configuration; watermarks are updated in place.
        shutdown : asyncio.Event
            Set when the process is shutting down.

        Returns
        -------
        SyncOutcome
            How the synchronization ended.
        """
        if shutdown.is_set():
            logger.debug("Not starting feed '%s': shutting down", name)
            return SyncOutcome.SKIPPED

        logger.debug("Fetching %s - %s", name, feed.url)

        try:
            document = await self._fetch(name, feed, shutdown)
        except FetchError as e:
            logger.warning("Failed to fetch feed '%s': %s", name, e)
            return SyncOutcome.FETCH_FAILED

        document.sort_entries()

        if document.updated is None or document.updated <= feed.last_updated:
            logger.debug("Feed '%s' not updated since %s", name, feed.last_updated)
            feed.last_run = self.clock()
            return SyncOutcome.NO_UPDATE

        for entry in document.entries:
            if entry.published <= feed.last_published:
                continue

            # Advance before sending: a failure never causes a repost
            feed.last_published = entry.published
            logger.info("%s: %s (%s)", name, entry.title, entry.published.isoformat())
            await self._dispatch(name, feed, entry)

        feed.last_updated = document.updated
        feed.last_run = self.clock()
        return SyncOutcome.DONE

    async def _fetch(
        self, name: str, feed: FeedConfig, shutdown: asyncio.Event
    ) -> FeedDocument:
        """
        Fetch the feed under the deadline, aborting early on shutdown.

        Raises
        ------
        FetchError
            On HTTP or parse failure, timeout, or shutdown.
        """
        fetch = asyncio.ensure_future(self.parser.fetch_document(feed.url, name))
        stopping = asyncio.ensure_future(shutdown.wait())
        try:
            async with asyncio.timeout(self.fetch_timeout):
                await asyncio.wait(
                    {fetch, stopping}, return_when=asyncio.FIRST_COMPLETED
                )
        except TimeoutError as e:
            raise FetchError(f"timed out after {self.fetch_timeout:g}s") from e
        finally:
            pending = [task for task in (fetch, stopping) if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if not fetch.done() or fetch.cancelled():
            raise FetchError("aborted by shutdown")
        return fetch.result()

    async def _dispatch(self, name: str, feed: FeedConfig, entry: FeedEntry) -> None:
        """Send one entry to every webhook of the feed, in order."""
        try:
            description = sanitize_description(entry.description)
            image = extract_first_image(entry.description)
        except DescriptionParseError as e:
            logger.warning(
                "Skipping entry '%s' of feed '%s': %s", entry.title[:50], name, e
            )
            return

        for hook_url in feed.hooks:
            embed = render_entry(entry, feed.color, description, image, self.branding)
            message = render_message(embed, self.branding)
            try:
                await self.notifier.send(hook_url, message)
            except Exception as e:
                logger.error(
                    "Failed to notify for entry '%s': %s", entry.title[:50], e
                )
            await asyncio.sleep(self.send_delay)
