"""Guards shared by the command cogs."""

import discord

from aireform.util.discord_utils import is_administrator

ADMIN_ONLY_MESSAGE = "❌ You must be an administrator to use this command."
GUILD_ONLY_MESSAGE = "This command can only be used in a server."


async def ensure_guild_context(ctx: discord.ApplicationContext) -> bool:
    if not ctx.guild_id or ctx.guild is None:
        await ctx.respond(GUILD_ONLY_MESSAGE, ephemeral=True)
        return False
    return True


async def ensure_admin(ctx: discord.ApplicationContext) -> bool:
    """Reply with a rejection unless the invoker holds the administrator capability."""
    if not await ensure_guild_context(ctx):
        return False
    if not is_administrator(ctx.user):
        await ctx.respond(ADMIN_ONLY_MESSAGE, ephemeral=True)
        return False
    return True
