"""
Recent message history from the channels a guild has whitelisted for AI reading.

Only whitelisted, text-based channels are read. Bot messages are skipped, the
per-channel results are merged, and the newest ``limit`` messages are kept.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import discord

from aireform.datatypes.discord_datatypes import ChannelID
from aireform.util.discord_utils import is_text_based
from aireform.util.logger import get_logger

logger = get_logger("channel_history")


async def fetch_whitelisted_history(
    guild: discord.Guild,
    channel_ids: Iterable[ChannelID],
    *,
    limit: int = 50,
) -> List[Dict[str, Any]]:
    """Collect up to ``limit`` recent human messages across the given channels.

    Returns:
        List[Dict[str, Any]]: ``{channel, author, content, timestamp}`` entries,
        newest first. ``timestamp`` is in milliseconds since the epoch.
    """
    history: List[Dict[str, Any]] = []

    for channel_id in channel_ids:
        channel = guild.get_channel(ChannelID(channel_id).to_int())
        if channel is None or not is_text_based(channel):
            logger.debug("[HISTORY] Whitelisted channel %s is missing or not text-based", channel_id)
            continue
        try:
            async for message in channel.history(limit=limit):
                if message.author.bot:
                    continue
                history.append(
                    {
                        "channel": channel.name,
                        "author": message.author.name,
                        "content": message.content,
                        "timestamp": int(message.created_at.timestamp() * 1000),
                    }
                )
        except Exception as exc:
            logger.error("[HISTORY] Error fetching messages from %s: %s", channel.name, exc)

    history.sort(key=lambda entry: entry["timestamp"], reverse=True)
    return history[:limit]
