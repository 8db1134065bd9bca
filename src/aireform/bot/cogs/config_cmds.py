"""
Configuration cog: per-guild context, reform suggestions and channel whitelist.

Every command requires the administrator capability and replies ephemerally so
configuration never leaks into public channels. Input problems surface as
:class:`ValidationError` messages and leave the stored configuration untouched.
"""

from typing import Iterable, List

import discord
from discord.ext import commands

from aireform.bot.cogs.base import ensure_admin
from aireform.bot.services import ReformServices
from aireform.datatypes.discord_datatypes import ChannelID
from aireform.reform.errors import ValidationError
from aireform.ui.embeds import build_config_embed, build_suggestions_embed, build_whitelist_embed
from aireform.util.discord_utils import is_text_based
from aireform.util.logger import get_logger

logger = get_logger("config_cmds")


def resolve_channel_names(guild: discord.Guild, channel_ids: Iterable[ChannelID]) -> List[str]:
    """Names of the whitelisted channels that still exist."""
    names: List[str] = []
    for channel_id in channel_ids:
        channel = guild.get_channel(channel_id.to_int())
        if channel is not None:
            names.append(channel.name)
    return names


class ConfigCog(commands.Cog):
    """Admin commands managing what the AI knows about the guild."""

    def __init__(self, discord_bot_instance, services: ReformServices):
        self.discord_bot_instance = discord_bot_instance
        self.services = services
        self.store = services.config_store
        logger.info("Config cog loaded")

    @commands.slash_command(name="add_suggestion", description="Admin only: Add a suggestion for server reforms")
    async def add_suggestion(
        self,
        ctx: discord.ApplicationContext,
        suggestion: discord.Option(str, "The suggestion to add"),  # type: ignore[valid-type]
    ):
        if not await ensure_admin(ctx):
            return
        try:
            count = await self.store.add_suggestion(ctx.guild_id, suggestion)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        await ctx.respond(f"✅ Suggestion added! ({count}/{self.store.max_suggestions})", ephemeral=True)

    @commands.slash_command(name="remove_suggestion", description="Admin only: Remove a suggestion by ID")
    async def remove_suggestion(
        self,
        ctx: discord.ApplicationContext,
        suggestion_id: discord.Option(str, "The ID of the suggestion to remove", name="id"),  # type: ignore[valid-type]
    ):
        if not await ensure_admin(ctx):
            return
        try:
            await self.store.remove_suggestion(ctx.guild_id, suggestion_id)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        await ctx.respond("✅ Suggestion removed!", ephemeral=True)

    @commands.slash_command(name="list_suggestions", description="Admin only: List all current suggestions")
    async def list_suggestions(self, ctx: discord.ApplicationContext):
        if not await ensure_admin(ctx):
            return
        suggestions = await self.store.list_suggestions(ctx.guild_id)
        if not suggestions:
            await ctx.respond("No suggestions found.", ephemeral=True)
            return
        await ctx.respond(embed=build_suggestions_embed(suggestions), ephemeral=True)

    @commands.slash_command(name="set_context", description="Admin only: Set the AI context for this server")
    async def set_context(
        self,
        ctx: discord.ApplicationContext,
        context: discord.Option(str, "The context to set (max 200 characters)"),  # type: ignore[valid-type]
    ):
        if not await ensure_admin(ctx):
            return
        try:
            await self.store.set_context(ctx.guild_id, context)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        await ctx.respond("✅ Context set successfully!", ephemeral=True)

    @commands.slash_command(name="whitelist_channel", description="Admin only: Add a channel to the AI reading whitelist")
    async def whitelist_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.abc.GuildChannel, "The channel to whitelist"),  # type: ignore[valid-type]
    ):
        if not await ensure_admin(ctx):
            return
        if not is_text_based(channel):
            await ctx.respond("❌ Only text channels can be whitelisted.", ephemeral=True)
            return
        try:
            count = await self.store.whitelist_channel(ctx.guild_id, channel.id)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        await ctx.respond(
            f"✅ Added {channel.name} to whitelist! ({count}/{self.store.max_whitelisted_channels})",
            ephemeral=True,
        )

    @commands.slash_command(name="unwhitelist_channel", description="Admin only: Remove a channel from the AI reading whitelist")
    async def unwhitelist_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.abc.GuildChannel, "The channel to remove from whitelist"),  # type: ignore[valid-type]
    ):
        if not await ensure_admin(ctx):
            return
        try:
            await self.store.unwhitelist_channel(ctx.guild_id, channel.id)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        await ctx.respond(f"✅ Removed {channel.name} from whitelist!", ephemeral=True)

    @commands.slash_command(name="list_whitelisted", description="Admin only: List all whitelisted channels")
    async def list_whitelisted(self, ctx: discord.ApplicationContext):
        if not await ensure_admin(ctx):
            return
        channel_ids = await self.store.list_whitelisted(ctx.guild_id)
        if not channel_ids:
            await ctx.respond("No channels are whitelisted.", ephemeral=True)
            return
        names = resolve_channel_names(ctx.guild, channel_ids)
        await ctx.respond(embed=build_whitelist_embed(names), ephemeral=True)

    @commands.slash_command(name="view_config", description="Admin only: View all server configurations")
    async def view_config(self, ctx: discord.ApplicationContext):
        if not await ensure_admin(ctx):
            return
        config = await self.store.get_guild_config(ctx.guild_id)
        names = resolve_channel_names(ctx.guild, config.whitelisted_channel_ids)
        await ctx.respond(embed=build_config_embed(config, names), ephemeral=True)


def setup(discord_bot_instance, services: ReformServices):
    """Add the configuration cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(ConfigCog(discord_bot_instance, services))
