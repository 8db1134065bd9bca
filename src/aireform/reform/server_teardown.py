"""Owner-only wipe of a guild's roles and channels, used to reset test servers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import discord

from aireform.util.discord_utils import is_category
from aireform.util.logger import get_logger

logger = get_logger("server_teardown")


@dataclass(slots=True)
class TeardownReport:
    deleted_roles: List[str] = field(default_factory=list)
    deleted_channels: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


async def delete_everything(guild: discord.Guild, keep_channel: Optional[discord.abc.GuildChannel]) -> TeardownReport:
    """Delete every role except ``@everyone`` and every channel except ``keep_channel``.

    Each deletion is attempted independently; failures (managed roles, roles
    above the bot, missing permissions) are logged and collected.
    """
    report = TeardownReport()
    default_role_id = guild.default_role.id

    for role in list(guild.roles):
        if role.id == default_role_id:
            continue
        try:
            await role.delete(reason="AIreform delete_all")
            report.deleted_roles.append(role.name)
            logger.info("[TEARDOWN] Deleted role: %s", role.name)
        except Exception as exc:
            report.failed.append(role.name)
            logger.error("[TEARDOWN] Failed to delete role %s: %s", role.name, exc)

    keep_id = keep_channel.id if keep_channel is not None else None
    for channel in list(guild.channels):
        if channel.id == keep_id:
            continue
        kind = "category" if is_category(channel) else "channel"
        try:
            await channel.delete(reason="AIreform delete_all")
            report.deleted_channels.append(channel.name)
            logger.info("[TEARDOWN] Deleted %s: %s", kind, channel.name)
        except Exception as exc:
            report.failed.append(channel.name)
            logger.error("[TEARDOWN] Failed to delete %s %s: %s", kind, channel.name, exc)

    logger.info(
        "[TEARDOWN] Guild %s wiped except the current channel (%d roles, %d channels, %d failures)",
        guild.id,
        len(report.deleted_roles),
        len(report.deleted_channels),
        len(report.failed),
    )
    return report
