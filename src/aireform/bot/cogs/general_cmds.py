"""General cog: the ``/help`` command."""

import discord
from discord.ext import commands

from aireform.ui.embeds import build_help_embed
from aireform.util.logger import get_logger

logger = get_logger("general_cmds")


class GeneralCog(commands.Cog):
    def __init__(self, discord_bot_instance):
        self.discord_bot_instance = discord_bot_instance
        logger.info("General cog loaded")

    @commands.slash_command(name="help", description="Shows information about all available commands")
    async def help(self, ctx: discord.ApplicationContext):
        await ctx.respond(embed=build_help_embed())


def setup(discord_bot_instance):
    discord_bot_instance.add_cog(GeneralCog(discord_bot_instance))
