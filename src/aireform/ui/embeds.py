import datetime
from typing import Iterable, List

import discord

from aireform.configuration.guild_config import GuildConfig

REFORM_WARNING = (
    "This action will lock all channels and restructure the server using AI. **BE *CAREFUL* THOUGH**, "
    "because this AI is experimental. You should not use this feature in existing servers, instead make a new "
    "one and experiment there before publishing it to a Discord template, and then port it over to your server."
)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def build_help_embed() -> discord.Embed:
    """Describe every command and the reform safety notes."""
    embed = discord.Embed(
        title="🤖 AIreform",
        description=(
            "An AI-powered bot that helps analyze and restructure Discord servers. **⚠️ WARNING: The reform "
            "feature is experimental and should only be tested in new servers. Never use it in existing servers "
            "without first testing in a separate server and creating a backup.**"
        ),
        color=discord.Color.blue(),
    )
    embed.add_field(
        name="📊 Analysis Commands",
        value=(
            "`/evaluate_server` - Analyzes your server using AI and provides feedback\n"
            "`/view_config` - 🔒 Admin only: View all server configurations including context, suggestions, "
            "and whitelisted channels"
        ),
        inline=False,
    )
    embed.add_field(
        name="🔄 Reform Commands",
        value=(
            "`/reform` - 🔒 Admin only: Initiates an AI-powered server restructure (requires owner + admin approval)\n"
            "`/add_suggestion` - 🔒 Admin only: Add suggestions for the AI to consider during reform\n"
            "`/remove_suggestion` - 🔒 Admin only: Remove a specific suggestion by ID\n"
            "`/list_suggestions` - 🔒 Admin only: View all current reform suggestions"
        ),
        inline=False,
    )
    embed.add_field(
        name="⚙️ Configuration Commands",
        value=(
            "`/set_context` - 🔒 Admin only: Set server context for AI (max 200 chars)\n"
            "`/whitelist_channel` - 🔒 Admin only: Add a channel to AI analysis whitelist (max 10)\n"
            "`/unwhitelist_channel` - 🔒 Admin only: Remove a channel from whitelist\n"
            "`/list_whitelisted` - 🔒 Admin only: View all whitelisted channels"
        ),
        inline=False,
    )
    embed.add_field(
        name="⚠️ Important Notes",
        value=(
            "• The reform feature will lock all channels during restructuring\n"
            "• Server owner and at least half of admins must approve reforms\n"
            "• Always test reforms in a new server first\n"
            "• Create a backup before using reform features\n"
            "• The AI analyzes only whitelisted channels (max 10)\n"
            "• Each server can store up to 20 reform suggestions"
        ),
        inline=False,
    )
    embed.add_field(
        name="🔍 Message Analysis",
        value=(
            "The bot analyzes up to 50 recent messages from whitelisted channels to better understand server "
            "activity and provide more accurate recommendations."
        ),
        inline=False,
    )
    return embed


def build_reform_warning_embed(*, owner_only: bool, quorum: int, timeout_seconds: float) -> discord.Embed:
    if owner_only:
        requirement = (
            "The **server owner** must approve the changes, as there are no administrators other than the owner."
        )
    else:
        requirement = f"At least **half of the admins ({quorum})** and the **server owner** must approve the changes."
    embed = discord.Embed(
        title="Server Reform Warning",
        description=f"{REFORM_WARNING} {requirement}",
        color=discord.Color.yellow(),
        timestamp=_now(),
    )
    embed.set_footer(text=f"Approval closes in {int(timeout_seconds)} seconds.")
    return embed


def build_evaluation_embed(guild_name: str, evaluation: str) -> discord.Embed:
    embed = discord.Embed(
        title="Server Evaluation",
        description=evaluation[:4096],
        color=discord.Color.blue(),
        timestamp=_now(),
    )
    embed.set_footer(text=f"Evaluated for {guild_name}")
    return embed


def build_suggestions_embed(suggestions: List[str]) -> discord.Embed:
    return discord.Embed(
        title="Server Reform Suggestions",
        description="\n".join(f"{index}. {text}" for index, text in enumerate(suggestions, start=1))[:4096],
        color=discord.Color.teal(),
    )


def build_whitelist_embed(channel_names: Iterable[str]) -> discord.Embed:
    return discord.Embed(
        title="Whitelisted Channels",
        description="\n".join(channel_names) or "No channels are whitelisted.",
        color=discord.Color.teal(),
    )


def _field_value(lines: Iterable[str], empty: str) -> str:
    # Embed field values are capped at 1024 characters
    return ("\n".join(lines) or empty)[:1024]


def build_config_embed(config: GuildConfig, channel_names: Iterable[str]) -> discord.Embed:
    embed = discord.Embed(title="Server Configuration", color=discord.Color.teal())
    embed.add_field(name="Context", value=config.context[:1024] or "No context set", inline=False)
    embed.add_field(name="Suggestions", value=_field_value(config.suggestions, "No suggestions"), inline=False)
    embed.add_field(
        name="Whitelisted Channels",
        value=_field_value(channel_names, "No channels whitelisted"),
        inline=False,
    )
    return embed


def build_error_embed(description: str) -> discord.Embed:
    return discord.Embed(title="Error", description=description, color=discord.Color.red())
