"""
Synchronization scheduling.

Runs the periodic tick that starts due feeds under a concurrency limit,
saves the configuration periodically and handles shutdown.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from rss_relay.config import ConfigSaveError, ConfigStore, FeedConfig
from rss_relay.synchronizer import FeedSynchronizer, is_due, utcnow

logger = logging.getLogger(__name__)

# Seconds between two synchronization ticks
TICK_INTERVAL = 0.5

# Seconds between two configuration saves
SAVE_INTERVAL = 10.0


class Scheduler:
    """
    Drives feed synchronization.

    Each tick holds the configuration lock while it starts every due feed
    and waits for all of them, so no feed is ever synchronized twice at
    once and saving never observes a half-updated feed.
    """

    def __init__(
        self,
        store: ConfigStore,
        synchronizer: FeedSynchronizer,
        tick_interval: float = TICK_INTERVAL,
        save_interval: float = SAVE_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the scheduler.

        Parameters
        ----------
        store : ConfigStore
            Shared configuration.
        synchronizer : FeedSynchronizer
            Synchronizes a single feed.
        tick_interval : float
            Seconds between synchronization ticks.
        save_interval : float
            Seconds between configuration saves.
        clock : Callable[[], datetime]
            Source of the current UTC time for the due-check.
        """
        self.store = store
        self.synchronizer = synchronizer
        self.tick_interval = tick_interval
        self.save_interval = save_interval
        self.clock = clock
        self.shutdown_event = asyncio.Event()

    def shutdown(self) -> None:
        """Ask the scheduler to stop; in-flight fetches are aborted."""
        if not self.shutdown_event.is_set():
            logger.info("Shutdown requested")
        self.shutdown_event.set()

    async def run(self) -> None:
        """Tick until shutdown, then save the configuration one last time."""
        loop = asyncio.get_running_loop()
        next_save = loop.time() + self.save_interval
        logger.info("Scheduler started")

        try:
            while not await self._wait_for_shutdown(self.tick_interval):
                await self.run_tick()
                if loop.time() >= next_save:
                    await self.save()
                    next_save = loop.time() + self.save_interval
        finally:
            await self.save()
            logger.info("Scheduler stopped")

    async def _wait_for_shutdown(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if shutting down."""
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout)
        except TimeoutError:
            pass
        return self.shutdown_event.is_set()

    async def run_tick(self) -> int:
        """
        Start every due feed and wait for all of them.

        Returns
        -------
        int
            Number of synchronizations started.
        """
        tasks: list[asyncio.Task] = []

        async with self.store.locked() as config:
            limiter = asyncio.Semaphore(config.settings.max_concurrency)

            for name, feed in list(config.feeds.items()):
                if self.shutdown_event.is_set():
                    logger.info("Aborted feed sync: shutting down")
                    break
                if not is_due(feed, self.clock()):
                    continue

                await limiter.acquire()
                if self.shutdown_event.is_set():
                    limiter.release()
                    logger.info("Aborted feed sync: shutting down")
                    break
                tasks.append(
                    asyncio.create_task(
                        self._run_unit(name, feed, limiter), name=f"sync:{name}"
                    )
                )

            if tasks:
                await asyncio.gather(*tasks)

        return len(tasks)

    async def _run_unit(
        self, name: str, feed: FeedConfig, limiter: asyncio.Semaphore
    ) -> None:
        """Synchronize one feed and release its concurrency slot."""
        try:
            outcome = await self.synchronizer.sync(name, feed, self.shutdown_event)
            logger.debug("Feed '%s' finished: %s", name, outcome.value)
        except Exception as e:
            logger.error("Error synchronizing feed '%s': %s", name, e)
            feed.last_run = self.clock()
        finally:
            limiter.release()

    async def save(self) -> None:
        """Save the configuration, logging failures."""
        try:
            await self.store.save()
        except ConfigSaveError as e:
            logger.error("Failed to save configuration: %s", e)
