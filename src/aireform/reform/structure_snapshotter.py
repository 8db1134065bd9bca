"""Read-only capture of a guild's role and channel topology."""

from __future__ import annotations

import discord

from aireform.datatypes.reform_datatypes import (
    CategorySnapshot,
    ChannelKind,
    ChannelSnapshot,
    RoleSnapshot,
    StructureSnapshot,
)
from aireform.util.discord_utils import is_category, is_voice
from aireform.util.logger import get_logger

logger = get_logger("structure_snapshotter")


class StructureSnapshotter:
    """Turns live guild state into a :class:`StructureSnapshot`.

    Call :meth:`capture` after the channels have been locked so the planner sees
    the frozen state.
    """

    def capture(self, guild: discord.Guild) -> StructureSnapshot:
        default_role_id = guild.default_role.id
        roles = tuple(RoleSnapshot(name=role.name) for role in guild.roles if role.id != default_role_id)

        categories = []
        channels = []
        for channel in guild.channels:
            if is_category(channel):
                categories.append(CategorySnapshot(name=channel.name, id=channel.id))
                continue
            parent = getattr(channel, "category", None)
            channels.append(
                ChannelSnapshot(
                    name=channel.name,
                    type=ChannelKind.VOICE if is_voice(channel) else ChannelKind.TEXT,
                    category=parent.name if parent is not None else None,
                    description=getattr(channel, "topic", None) or "",
                )
            )

        snapshot = StructureSnapshot(roles=roles, categories=tuple(categories), channels=tuple(channels))
        logger.debug(
            "[SNAPSHOT] Guild %s: %d roles, %d categories, %d channels",
            guild.id,
            len(snapshot.roles),
            len(snapshot.categories),
            len(snapshot.channels),
        )
        return snapshot
