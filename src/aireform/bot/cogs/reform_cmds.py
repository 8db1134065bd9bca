"""
Reform cog: AI evaluation, approved server reform, and the owner-only wipe.

``/reform`` opens an approval session, shows the warning embed with a "Yes"
button, waits for the session's outcome, and on approval hands the guild to
the reform workflow. Only one approval or reform may be pending per guild.
"""

from typing import Any, Dict, Optional

import discord
from discord.ext import commands

from aireform.bot.cogs.base import ensure_admin, ensure_guild_context
from aireform.bot.services import ReformServices
from aireform.history.channel_history import fetch_whitelisted_history
from aireform.reform.approval_gate import ApprovalSession
from aireform.reform.errors import ApprovalRejected, ApprovalSessionActiveError, SchedulerBusyError
from aireform.reform.server_teardown import delete_everything
from aireform.reform.structure_snapshotter import StructureSnapshotter
from aireform.ui.embeds import build_error_embed, build_evaluation_embed, build_reform_warning_embed
from aireform.ui.reform_ui import ReformConfirmationView
from aireform.util.logger import get_logger

logger = get_logger("reform_cmds")

REFORM_ACTIVE_MESSAGE = "⚠️ A reform process is already active for this server."


def guild_details(guild: discord.Guild) -> Dict[str, Any]:
    """Summary of the guild sent to the model alongside the evaluation prompt."""
    return {
        "id": str(guild.id),
        "name": guild.name,
        "description": getattr(guild, "description", None),
        "member_count": getattr(guild, "member_count", None),
        "preferred_locale": str(getattr(guild, "preferred_locale", "") or ""),
        "premium_tier": getattr(guild, "premium_tier", None),
        "structure": StructureSnapshotter().capture(guild).to_payload(),
    }


class ReformCog(commands.Cog):
    """Slash commands that read or restructure the whole guild."""

    def __init__(self, discord_bot_instance, services: ReformServices):
        self.discord_bot_instance = discord_bot_instance
        self.services = services
        logger.info("Reform cog loaded")

    async def _followup(self, ctx: discord.ApplicationContext, content: str) -> None:
        try:
            await ctx.followup.send(content)
        except discord.HTTPException as exc:
            # Interaction tokens expire after 15 minutes; long queues can outlive them
            logger.warning("Could not send follow-up in guild %s: %s", ctx.guild_id, exc)

    @commands.slash_command(name="evaluate_server", description="Evaluate the server using AI.")
    async def evaluate_server(self, ctx: discord.ApplicationContext):
        if not await ensure_guild_context(ctx):
            return
        guild = ctx.guild
        await ctx.respond("🔍 Evaluating the server... Please wait.")

        try:
            config = await self.services.config_store.get_guild_config(guild.id)
            history = await fetch_whitelisted_history(
                guild,
                config.whitelisted_channel_ids,
                limit=self.services.settings.history_message_limit,
            )
            evaluation = await self.services.llm_engine.evaluate_server(
                guild_name=guild.name,
                context=config.context,
                guild_details=guild_details(guild),
                message_history=history,
                locale=str(guild.preferred_locale or "en-US"),
            )
            await ctx.edit(content="", embed=build_evaluation_embed(guild.name, evaluation))
        except Exception as exc:
            logger.exception("Error during server evaluation of guild %s: %s", guild.id, exc)
            await ctx.edit(content="❌ An error occurred while evaluating the server.", embeds=[])

    @commands.slash_command(name="reform", description="Admin only: Restructure the server with AI assistance.")
    async def reform(self, ctx: discord.ApplicationContext):
        if not await ensure_admin(ctx):
            return
        guild = ctx.guild
        if self.services.is_reform_pending(guild.id):
            await ctx.respond(REFORM_ACTIVE_MESSAGE, ephemeral=True)
            return

        view: Optional[ReformConfirmationView] = None

        async def prompt(session: ApprovalSession) -> None:
            nonlocal view
            view = ReformConfirmationView(session)
            embed = build_reform_warning_embed(
                owner_only=session.owner_only,
                quorum=session.quorum,
                timeout_seconds=session.timeout_seconds,
            )
            await ctx.respond(embed=embed, view=view, ephemeral=session.owner_only)
            try:
                view.message = await ctx.interaction.original_response()
            except discord.HTTPException:
                view.message = None

        try:
            # The guild stays reserved in the gate until the workflow has run
            async with self.services.approval_gate.hold(guild, prompt):
                if view is not None:
                    await view.close()
                    view = None
                await self._followup(ctx, "✅ Reform confirmed. Beginning server restructuring...")
                try:
                    await self.services.workflow.run(guild)
                except SchedulerBusyError:
                    await self._followup(ctx, REFORM_ACTIVE_MESSAGE)
        except ApprovalSessionActiveError:
            await ctx.respond(REFORM_ACTIVE_MESSAGE, ephemeral=True)
        except ApprovalRejected as exc:
            logger.info("Reform of guild %s not approved: %s", guild.id, exc)
            await self._followup(ctx, "❌ Reform not approved. Action cancelled.")
        finally:
            if view is not None:
                await view.close()

    @commands.slash_command(
        name="delete_all",
        description="Bot owner only: Delete every channel, category, and role (used to test the bot).",
    )
    async def delete_all(self, ctx: discord.ApplicationContext):
        if not await ensure_guild_context(ctx):
            return
        owner_id = self.services.bot_owner_id
        if owner_id is None or getattr(ctx.user, "id", None) != owner_id:
            await ctx.respond("❌ You must be the bot owner to use this command.", ephemeral=True)
            return

        await ctx.respond("⚠️ Nuking the server... Please wait.")
        try:
            await delete_everything(ctx.guild, ctx.channel)
            await ctx.edit(content="✅ Server has been nuked successfully.")
        except Exception as exc:
            logger.exception("Error during nuking process in guild %s: %s", ctx.guild_id, exc)
            await ctx.edit(
                content=None,
                embed=build_error_embed("An error occurred while nuking the server. Please try again later."),
            )


def setup(discord_bot_instance, services: ReformServices):
    """Add the reform cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(ReformCog(discord_bot_instance, services))
