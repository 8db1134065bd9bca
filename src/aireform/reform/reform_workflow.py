"""
Drives one approved server reform from channel lock to scheduler release.

    scheduler slot → lock channels → snapshot → status channel → plan →
    apply (progress into the status channel) → terminal status → release

Any failure inside the job is reported into the status channel and the
guild's scheduler slot is always released. There is no cancellation once a
job has started.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

import discord

from aireform.configuration.guild_config import GuildConfigStore
from aireform.configuration.settings import ReformSettings
from aireform.datatypes.reform_datatypes import ApplyReport, ChangeSet, StructureSnapshot
from aireform.reform import permissions
from aireform.reform.errors import PlannerResponseInvalid, SchedulerBusyError
from aireform.reform.reform_scheduler import ReformScheduler
from aireform.reform.status_reporter import StatusReporter
from aireform.reform.structure_applier import StructureApplier
from aireform.reform.structure_snapshotter import StructureSnapshotter
from aireform.util.discord_utils import is_text_based
from aireform.util.logger import get_logger

logger = get_logger("reform_workflow")


class StructurePlanner(Protocol):
    async def plan_reform(
        self,
        snapshot: StructureSnapshot,
        *,
        context: str,
        suggestions: Sequence[str],
        locale: str,
    ) -> ChangeSet: ...


async def lock_all_channels(guild: discord.Guild) -> int:
    """Stop ``@everyone`` from sending or reacting in every text-based channel.

    Returns:
        int: Number of channels locked.
    """
    locked = 0
    everyone = guild.default_role
    for channel in list(guild.channels):
        if not is_text_based(channel):
            continue
        try:
            overwrite = channel.overwrites_for(everyone)
            overwrite.update(**permissions.lock_overwrite_values())
            await channel.set_permissions(everyone, overwrite=overwrite, reason="AIreform reform in progress")
            locked += 1
        except Exception as exc:
            logger.error("[REFORM] Failed to lock channel %s: %s", channel.name, exc)
    logger.info("[REFORM] Locked %d channels in guild %s", locked, guild.id)
    return locked


class ReformWorkflow:
    """
    Runs reforms through the scheduler.

    Args:
        config_store: Source of the guild context and suggestions.
        planner: Produces the change-set for a snapshot.
        scheduler: Serializes reforms per guild.
        settings: Status channel name and teardown delay.
        snapshotter: Captures the guild structure.
    """

    def __init__(
        self,
        config_store: GuildConfigStore,
        planner: StructurePlanner,
        scheduler: ReformScheduler,
        settings: ReformSettings,
        *,
        snapshotter: Optional[StructureSnapshotter] = None,
    ) -> None:
        self.config_store = config_store
        self.planner = planner
        self.scheduler = scheduler
        self.settings = settings
        self.snapshotter = snapshotter or StructureSnapshotter()

    def is_active(self, guild_id: int) -> bool:
        return self.scheduler.is_active(guild_id)

    async def run(self, guild: discord.Guild) -> Optional[ApplyReport]:
        """Queue a reform of ``guild`` and wait for it to finish.

        Returns:
            ApplyReport | None: The apply report, or None if the job failed
            (the failure has already been reported in the status channel).

        Raises:
            SchedulerBusyError: If a reform is already in flight for the guild.
        """
        report: Optional[ApplyReport] = None

        async def job() -> None:
            nonlocal report
            report = await self.execute(guild)

        if not await self.scheduler.enqueue(guild.id, job):
            raise SchedulerBusyError("A reform is already running for this server.")
        return report

    async def execute(self, guild: discord.Guild) -> Optional[ApplyReport]:
        """Run one reform immediately, catching and reporting every failure."""
        reporter = StatusReporter(
            guild,
            channel_name=self.settings.status_channel_name,
            delete_delay_seconds=self.settings.status_channel_delete_delay_seconds,
        )
        try:
            await lock_all_channels(guild)
            snapshot = self.snapshotter.capture(guild)

            await reporter.open()
            await reporter.post("🚀 Beginning server reform process...")

            config = await self.config_store.get_guild_config(guild.id)
            try:
                change_set = await self.planner.plan_reform(
                    snapshot,
                    context=config.context,
                    suggestions=config.suggestions,
                    locale=str(getattr(guild, "preferred_locale", None) or "en-US"),
                )
            except PlannerResponseInvalid:
                await reporter.post("❌ Error: Invalid AI response")
                raise
            await reporter.post("🤖 Received AI recommendations...")

            report = await StructureApplier(progress=reporter.post).apply(guild, change_set)
        except Exception as exc:
            logger.exception("[REFORM] Error during server reform of guild %s: %s", guild.id, exc)
            await reporter.fail(exc)
            return None

        await reporter.succeed()
        logger.info("[REFORM] Server reform of guild %s completed: %s", guild.id, report.summary())
        return report
