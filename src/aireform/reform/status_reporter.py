"""Transient progress channel shown while a reform runs."""

from __future__ import annotations

import asyncio
from typing import Optional, Set

import discord

from aireform.util.logger import get_logger

logger = get_logger("status_reporter")


class StatusReporter:
    """
    Posts reform progress into a temporary channel and tears it down afterwards.

    Nobody but the bot may send in the channel. Posting failures are logged and
    never interrupt the reform.

    Args:
        guild: Guild being reformed.
        channel_name: Name of the temporary channel.
        delete_delay_seconds: Delay between the terminal message and deletion.
    """

    def __init__(self, guild: discord.Guild, *, channel_name: str = "reform-status", delete_delay_seconds: float = 5.0) -> None:
        self.guild = guild
        self.channel_name = channel_name
        self.delete_delay_seconds = delete_delay_seconds
        self.channel: Optional[discord.TextChannel] = None
        self.teardown_task: Optional[asyncio.Task] = None

    async def open(self) -> Optional[discord.TextChannel]:
        """Create the status channel."""
        overwrites = {
            self.guild.default_role: discord.PermissionOverwrite(send_messages=False),
            self.guild.me: discord.PermissionOverwrite(send_messages=True),
        }
        try:
            self.channel = await self.guild.create_text_channel(self.channel_name, overwrites=overwrites)
        except Exception as exc:
            logger.error("[STATUS] Could not create status channel in guild %s: %s", self.guild.id, exc)
            self.channel = None
        return self.channel

    async def post(self, message: str) -> None:
        logger.info("[STATUS] Guild %s: %s", self.guild.id, message)
        if self.channel is None:
            return
        try:
            await self.channel.send(message)
        except Exception as exc:
            logger.warning("[STATUS] Failed to post status message in guild %s: %s", self.guild.id, exc)

    async def succeed(self, message: str = "✅ Server reform completed successfully!") -> None:
        await self.post(message)
        self.schedule_teardown()

    async def fail(self, error: BaseException | str) -> None:
        await self.post(f"❌ Error during server reform: {error}")
        self.schedule_teardown()

    def schedule_teardown(self) -> Optional[asyncio.Task]:
        """Delete the status channel after the configured delay."""
        if self.channel is None or self.teardown_task is not None:
            return self.teardown_task
        self.teardown_task = asyncio.create_task(self._teardown(), name=f"aireform-status-teardown-{self.guild.id}")
        _pending_teardowns.add(self.teardown_task)
        self.teardown_task.add_done_callback(_pending_teardowns.discard)
        return self.teardown_task

    async def _teardown(self) -> None:
        await asyncio.sleep(self.delete_delay_seconds)
        channel = self.channel
        if channel is None:
            return
        try:
            await channel.delete()
            logger.info("[STATUS] Status channel deleted in guild %s", self.guild.id)
        except Exception as exc:
            logger.error("[STATUS] Error deleting status channel in guild %s: %s", self.guild.id, exc)


_pending_teardowns: Set[asyncio.Task] = set()


async def shutdown_pending_teardowns() -> None:
    """Cancel status channel deletions that have not fired yet."""
    tasks = list(_pending_teardowns)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    _pending_teardowns.clear()
