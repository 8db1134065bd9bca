"""Helpers for inspecting and looking up Discord guild objects by name or type."""

from __future__ import annotations

from typing import Any, Iterable, Optional

import discord

VOICE_TYPES = (discord.ChannelType.voice, discord.ChannelType.stage_voice)
NON_TEXT_TYPES = (discord.ChannelType.category, discord.ChannelType.forum)


def is_category(channel: Any) -> bool:
    return getattr(channel, "type", None) == discord.ChannelType.category


def is_voice(channel: Any) -> bool:
    return getattr(channel, "type", None) in VOICE_TYPES


def is_text_based(channel: Any) -> bool:
    """True for channels that carry messages (text, news, threads and the chat in voice channels)."""
    channel_type = getattr(channel, "type", None)
    return channel_type is not None and channel_type not in NON_TEXT_TYPES


def find_by_name(items: Iterable[Any], name: str) -> Optional[Any]:
    """Return the first item whose name matches exactly (case-sensitive)."""
    return next((item for item in items if getattr(item, "name", None) == name), None)


def find_role(guild: discord.Guild, name: str) -> Optional[discord.Role]:
    return find_by_name(guild.roles, name)


def is_administrator(member: Any) -> bool:
    permissions = getattr(member, "guild_permissions", None)
    return bool(getattr(permissions, "administrator", False))
