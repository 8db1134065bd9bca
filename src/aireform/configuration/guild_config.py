"""
Persistent per-guild configuration for the reform bot.

Responsibilities:
- Store the AI context text, reform suggestions and channel whitelist per guild
- Enforce the per-guild limits (context length, suggestion FIFO capacity,
  whitelist capacity and uniqueness)

Storage layout (a single JSON document, read and written whole):

    {
      "suggestions":       {"<guild_id>": ["...", ...]},
      "contexts":          {"<guild_id>": "..."},
      "channelWhitelists": {"<guild_id>": ["<channel_id>", ...]}
    }

Every mutating call is an unlocked read-modify-write of the whole document, so
two commands racing on the same guild can lose one update.
"""

from __future__ import annotations

import asyncio
import fcntl
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from aireform.datatypes.discord_datatypes import ChannelID, GuildID
from aireform.reform.errors import ValidationError
from aireform.util.logger import get_logger

logger = get_logger("guild_config")

DOCUMENT_SECTIONS = ("suggestions", "contexts", "channelWhitelists")


@dataclass(slots=True)
class GuildConfig:
    """Per-guild configuration values."""

    guild_id: GuildID
    context: str = ""
    suggestions: List[str] = field(default_factory=list)
    whitelisted_channel_ids: List[ChannelID] = field(default_factory=list)


def empty_document() -> Dict[str, Dict[str, Any]]:
    return {section: {} for section in DOCUMENT_SECTIONS}


class GuildConfigStore:
    """
    JSON-document backed store for :class:`GuildConfig` records.

    Args:
        path: Location of the JSON document. Created with empty sections on
            first read if missing or unreadable.
        max_suggestions: FIFO capacity of the suggestion list.
        max_whitelisted_channels: Capacity of the channel whitelist.
        max_context_length: Maximum length of the context text.
    """

    def __init__(
        self,
        path: Path,
        *,
        max_suggestions: int = 20,
        max_whitelisted_channels: int = 10,
        max_context_length: int = 200,
    ) -> None:
        self.path = Path(path)
        self.max_suggestions = max_suggestions
        self.max_whitelisted_channels = max_whitelisted_channels
        self.max_context_length = max_context_length

    # --------------------------
    # Document I/O
    # --------------------------
    def _read_document(self) -> Dict[str, Dict[str, Any]]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = json.load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.info("[GUILD CONFIG] %s not found; initializing an empty document", self.path)
            data = None
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("[GUILD CONFIG] Failed to read %s (%s); initializing an empty document", self.path, exc)
            data = None

        if not isinstance(data, dict):
            document = empty_document()
            self._write_document(document)
            return document

        for section in DOCUMENT_SECTIONS:
            if not isinstance(data.get(section), dict):
                data[section] = {}
        return data

    def _write_document(self, document: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a+", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.seek(0)
                f.truncate()
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    async def load(self) -> Dict[str, Dict[str, Any]]:
        """Read the whole document without blocking the event loop."""
        return await asyncio.to_thread(self._read_document)

    async def save(self, document: Dict[str, Dict[str, Any]]) -> None:
        """Write the whole document without blocking the event loop."""
        await asyncio.to_thread(self._write_document, document)

    # --------------------------
    # Reads
    # --------------------------
    async def get_guild_config(self, guild_id: GuildID | int | str) -> GuildConfig:
        """Return the configuration for a guild (defaults if never written)."""
        key = str(GuildID(guild_id))
        document = await self.load()
        return GuildConfig(
            guild_id=GuildID(key),
            context=str(document["contexts"].get(key) or ""),
            suggestions=[str(s) for s in document["suggestions"].get(key) or []],
            whitelisted_channel_ids=[ChannelID(c) for c in document["channelWhitelists"].get(key) or []],
        )

    async def get_context(self, guild_id: GuildID | int | str) -> str:
        return (await self.get_guild_config(guild_id)).context

    async def list_suggestions(self, guild_id: GuildID | int | str) -> List[str]:
        return (await self.get_guild_config(guild_id)).suggestions

    async def list_whitelisted(self, guild_id: GuildID | int | str) -> List[ChannelID]:
        return (await self.get_guild_config(guild_id)).whitelisted_channel_ids

    # --------------------------
    # Writes
    # --------------------------
    async def set_context(self, guild_id: GuildID | int | str, context: str) -> None:
        """Replace the AI context text for a guild.

        Raises:
            ValidationError: If the text is longer than ``max_context_length``.
        """
        context = context or ""
        if len(context) > self.max_context_length:
            raise ValidationError(f"Context must be {self.max_context_length} characters or less.")

        key = str(GuildID(guild_id))
        document = await self.load()
        document["contexts"][key] = context
        await self.save(document)
        logger.debug("[GUILD CONFIG] Updated context for guild %s (len=%d)", key, len(context))

    async def add_suggestion(self, guild_id: GuildID | int | str, suggestion: str) -> int:
        """Append a suggestion, evicting the oldest ones past capacity.

        Returns:
            int: Number of stored suggestions after the append.
        """
        suggestion = (suggestion or "").strip()
        if not suggestion:
            raise ValidationError("Suggestion cannot be empty.")

        key = str(GuildID(guild_id))
        document = await self.load()
        suggestions = list(document["suggestions"].get(key) or [])
        suggestions.append(suggestion)
        evicted = max(0, len(suggestions) - self.max_suggestions)
        if evicted:
            del suggestions[:evicted]
            logger.debug("[GUILD CONFIG] Evicted %d oldest suggestion(s) for guild %s", evicted, key)
        document["suggestions"][key] = suggestions
        await self.save(document)
        return len(suggestions)

    async def remove_suggestion(self, guild_id: GuildID | int | str, position: int | str) -> str:
        """Remove a suggestion by its 1-based position and return its text.

        Raises:
            ValidationError: If the position is not an integer or out of range.
        """
        try:
            index = int(str(position).strip()) - 1
        except ValueError:
            raise ValidationError("Invalid suggestion ID.") from None

        key = str(GuildID(guild_id))
        document = await self.load()
        suggestions = list(document["suggestions"].get(key) or [])
        if index < 0 or index >= len(suggestions):
            raise ValidationError("Invalid suggestion ID.")

        removed = suggestions.pop(index)
        document["suggestions"][key] = suggestions
        await self.save(document)
        return removed

    async def whitelist_channel(self, guild_id: GuildID | int | str, channel_id: ChannelID | int | str) -> int:
        """Add a channel to the history whitelist.

        Returns:
            int: Number of whitelisted channels after the addition.

        Raises:
            ValidationError: If the whitelist is full or already holds the channel.
        """
        key = str(GuildID(guild_id))
        channel_key = str(ChannelID(channel_id))
        document = await self.load()
        whitelist = [str(c) for c in document["channelWhitelists"].get(key) or []]

        if len(whitelist) >= self.max_whitelisted_channels:
            raise ValidationError(f"Maximum of {self.max_whitelisted_channels} whitelisted channels allowed.")
        if channel_key in whitelist:
            raise ValidationError("This channel is already whitelisted.")

        whitelist.append(channel_key)
        document["channelWhitelists"][key] = whitelist
        await self.save(document)
        return len(whitelist)

    async def unwhitelist_channel(self, guild_id: GuildID | int | str, channel_id: ChannelID | int | str) -> None:
        """Remove a channel from the history whitelist.

        Raises:
            ValidationError: If the channel is not whitelisted.
        """
        key = str(GuildID(guild_id))
        channel_key = str(ChannelID(channel_id))
        document = await self.load()
        whitelist = [str(c) for c in document["channelWhitelists"].get(key) or []]
        if channel_key not in whitelist:
            raise ValidationError("This channel is not whitelisted.")

        document["channelWhitelists"][key] = [c for c in whitelist if c != channel_key]
        await self.save(document)
