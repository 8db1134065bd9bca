"""
Per-guild mutual exclusion for reform jobs.

Each guild may have at most one reform job in flight. Jobs from different
guilds run concurrently, but each new job waits ``position × stagger interval``
before starting, where ``position`` is its 0-based place among the jobs in
flight when it arrived, so heavy structural work and planner calls are spread
out over time.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from aireform.datatypes.discord_datatypes import GuildID
from aireform.util.logger import get_logger

logger = get_logger("reform_scheduler")


@dataclass(slots=True)
class ReformJob:
    guild_id: GuildID
    enqueued_at: float
    position: int = 0


class ReformScheduler:
    """
    Ordered registry of in-flight reform jobs.

    Args:
        jobs: Insertion-ordered store of in-flight jobs keyed by guild id. A
            plain dict by default; injectable for tests or a persistent backend.
        stagger_seconds: Delay added per job already in flight.
        sleep: Awaitable used for the stagger delay (replaced in tests).
    """

    def __init__(
        self,
        jobs: Dict[GuildID, ReformJob] | None = None,
        *,
        stagger_seconds: float = 180.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.jobs: Dict[GuildID, ReformJob] = jobs if jobs is not None else {}
        self.stagger_seconds = stagger_seconds
        self._sleep = sleep

    def is_active(self, guild_id: GuildID | int) -> bool:
        return GuildID(guild_id) in self.jobs

    @property
    def active_guild_ids(self) -> List[GuildID]:
        """Guild ids in arrival order."""
        return list(self.jobs)

    def start_delay(self, guild_id: GuildID | int) -> float:
        job = self.jobs.get(GuildID(guild_id))
        return job.position * self.stagger_seconds if job else 0.0

    def _register(self, guild_id: GuildID) -> Optional[ReformJob]:
        if guild_id in self.jobs:
            return None
        job = ReformJob(guild_id=guild_id, enqueued_at=time.time())
        self.jobs[guild_id] = job
        job.position = list(self.jobs).index(guild_id)
        return job

    def _release(self, guild_id: GuildID) -> None:
        self.jobs.pop(guild_id, None)
        logger.info("[REFORM SCHEDULER] Released slot for guild %s (%d still in flight)", guild_id, len(self.jobs))

    @asynccontextmanager
    async def slot(self, guild_id: GuildID | int) -> AsyncIterator[Optional[ReformJob]]:
        """Hold the guild's in-progress slot for the duration of the block.

        Yields ``None`` without waiting when the guild already has a job in
        flight. Otherwise waits out the stagger delay, yields the job, and
        releases the slot on exit, including on errors and cancellation.
        """
        key = GuildID(guild_id)
        job = self._register(key)
        if job is None:
            logger.warning("[REFORM SCHEDULER] Guild %s already has a reform in flight; ignoring", key)
            yield None
            return

        try:
            delay = job.position * self.stagger_seconds
            if delay > 0:
                logger.info("[REFORM SCHEDULER] Guild %s queued at position %d; starting in %.0fs", key, job.position, delay)
                await self._sleep(delay)
            logger.info("[REFORM SCHEDULER] Starting reform for guild %s", key)
            yield job
        finally:
            self._release(key)

    async def enqueue(self, guild_id: GuildID | int, job: Callable[[], Awaitable[object]]) -> bool:
        """Run ``job`` once the guild's slot is acquired.

        Returns:
            bool: False if the guild already had a job in flight (nothing ran).
        """
        async with self.slot(guild_id) as acquired:
            if acquired is None:
                return False
            await job()
            return True
