"""Gateway lifecycle logging and the fallback handler for failed slash commands."""

import discord
from discord.ext import commands

from aireform.util.logger import get_logger

logger = get_logger("events_listener")

COMMAND_FAILED_MESSAGE = "A :bug: showed up while running this command."


class EventsListenerCog(commands.Cog):
    def __init__(self, discord_bot_instance):
        self.bot = discord_bot_instance
        logger.info("Events listener registered")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        user = self.bot.user
        if user is None:
            logger.warning("Gateway ready without a bot user")
            return
        logger.info("Logged in as %s (%s), present in %d guild(s)", user, user.id, len(self.bot.guilds))

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild):
        logger.info("Joined guild %s (%s)", guild.name, guild.id)

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        """Log the failure and tell the invoker, whether or not the interaction was already answered."""
        command_name = getattr(ctx.command, "qualified_name", "?")
        logger.error("/%s failed in guild %s: %s", command_name, ctx.guild_id, error, exc_info=error)
        try:
            await ctx.respond(COMMAND_FAILED_MESSAGE, ephemeral=True)
        except discord.InteractionResponded:
            await ctx.followup.send(COMMAND_FAILED_MESSAGE, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning("Could not report the failure of /%s: %s", command_name, exc)


def setup(discord_bot_instance):
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance))
