"""Capability flag names and the default overwrites applied to reformed channels.

The planner speaks in PascalCase flag names ("KickMembers", "ViewChannel");
py-cord uses snake_case attributes on :class:`discord.Permissions`. Names that
do not resolve to a known flag are dropped.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping

import discord

from aireform.util.logger import get_logger

logger = get_logger("permissions")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Flag names whose py-cord attribute does not follow from the PascalCase form
FLAG_ALIASES: Dict[str, str] = {
    "UseVAD": "use_voice_activation",
    "ManageGuild": "manage_guild",
    "ManageGuildExpressions": "manage_emojis",
    "ManageEmojisAndStickers": "manage_emojis",
    "CreateGuildExpressions": "manage_emojis",
    "UseApplicationCommands": "use_application_commands",
    "SendTTSMessages": "send_tts_messages",
}


def flag_attribute(name: str) -> str | None:
    """Map a capability flag name to a :class:`discord.Permissions` attribute.

    Returns:
        str | None: The attribute name, or ``None`` if the flag is unknown.
    """
    if not isinstance(name, str) or not name.strip():
        return None
    name = name.strip()
    candidate = FLAG_ALIASES.get(name) or _CAMEL_BOUNDARY.sub("_", name).lower()
    if candidate in discord.Permissions.VALID_FLAGS:
        return candidate
    return None


def resolve_flags(names: Iterable[str]) -> List[str]:
    """Resolve flag names to attributes, dropping unknown names and duplicates."""
    resolved: List[str] = []
    for name in names:
        attribute = flag_attribute(name)
        if attribute is None:
            logger.debug("[PERMISSIONS] Dropping unknown capability flag %r", name)
            continue
        if attribute not in resolved:
            resolved.append(attribute)
    return resolved


def role_permissions(names: Iterable[str]) -> discord.Permissions:
    """Build role-level permissions granting exactly the known flags in ``names``."""
    return discord.Permissions(**{attribute: True for attribute in resolve_flags(names)})


def overwrite_from_mapping(mapping: Mapping[str, bool]) -> discord.PermissionOverwrite:
    """Build a channel overwrite from a ``{flag name: allow}`` mapping."""
    values: Dict[str, bool] = {}
    for name, allowed in mapping.items():
        attribute = flag_attribute(name)
        if attribute is None:
            logger.debug("[PERMISSIONS] Dropping unknown overwrite flag %r", name)
            continue
        values[attribute] = bool(allowed)
    return discord.PermissionOverwrite(**values)


def creation_overwrites(guild: discord.Guild) -> Dict[object, discord.PermissionOverwrite]:
    """Overwrites for a freshly created channel: hidden from everyone, managed by the bot."""
    return {
        guild.default_role: discord.PermissionOverwrite(view_channel=False, send_messages=False, connect=False),
        guild.me: bot_overwrite(),
    }


def baseline_overwrites(guild: discord.Guild) -> Dict[object, discord.PermissionOverwrite]:
    """Overwrites a channel is reset to before its per-role overwrites are layered on.

    Everyone may see the channel but not speak in it; the roles named by the
    planner open it up from there.
    """
    return {
        guild.default_role: discord.PermissionOverwrite(view_channel=True, send_messages=False, connect=False),
        guild.me: bot_overwrite(),
    }


def bot_overwrite() -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite(
        view_channel=True,
        send_messages=True,
        manage_channels=True,
        manage_roles=True,
    )


def lock_overwrite_values() -> Dict[str, bool]:
    """Values applied to ``@everyone`` on every text-based channel while a reform runs."""
    return {"send_messages": False, "add_reactions": False}
