"""Tests for the slash command handlers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from aireform.bot.cogs import config_cmds, events_listener, general_cmds, reform_cmds
from aireform.bot.cogs.base import ADMIN_ONLY_MESSAGE, GUILD_ONLY_MESSAGE
from aireform.bot.services import ReformServices
from aireform.configuration.settings import ReformSettings
from aireform.datatypes.discord_datatypes import GuildID
from aireform.reform.approval_gate import ApprovalGate
from aireform.reform.reform_scheduler import ReformScheduler
from aireform.ui.reform_ui import ReformConfirmationView
from fakes import FakeGuild


class Ctx:
    def __init__(self, guild=None, *, user_id=1, administrator=True):
        self.guild = guild
        self.guild_id = guild.id if guild is not None else None
        self.user = SimpleNamespace(id=user_id, guild_permissions=SimpleNamespace(administrator=administrator))
        self.channel = None
        self.respond = AsyncMock()
        self.edit = AsyncMock()
        self.followup = SimpleNamespace(send=AsyncMock())
        self.interaction = SimpleNamespace(original_response=AsyncMock(return_value=None))


def make_services(store, *, timeout_seconds=5.0, bot_owner_id=None):
    return ReformServices(
        config_store=store,
        llm_engine=SimpleNamespace(evaluate_server=AsyncMock(return_value="7/10, decent.")),
        approval_gate=ApprovalGate(timeout_seconds=timeout_seconds),
        scheduler=ReformScheduler(stagger_seconds=0),
        workflow=SimpleNamespace(run=AsyncMock()),
        settings=ReformSettings(),
        bot_owner_id=bot_owner_id,
    )


def test_setup_adds_cogs(store):
    added = []
    fake_bot = SimpleNamespace(add_cog=added.append)
    services = make_services(store)

    config_cmds.setup(fake_bot, services)
    reform_cmds.setup(fake_bot, services)
    general_cmds.setup(fake_bot)
    events_listener.setup(fake_bot)

    assert [type(cog) for cog in added] == [
        config_cmds.ConfigCog,
        reform_cmds.ReformCog,
        general_cmds.GeneralCog,
        events_listener.EventsListenerCog,
    ]


class TestConfigCog:
    @pytest.mark.asyncio
    async def test_requires_guild(self, store):
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx()

        await config_cmds.ConfigCog.list_suggestions.callback(cog, ctx)

        ctx.respond.assert_awaited_once_with(GUILD_ONLY_MESSAGE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_requires_administrator(self, store):
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(FakeGuild(), administrator=False)

        await config_cmds.ConfigCog.add_suggestion.callback(cog, ctx, "Add a memes channel")

        ctx.respond.assert_awaited_once_with(ADMIN_ONLY_MESSAGE, ephemeral=True)
        assert await store.list_suggestions(ctx.guild_id) == []

    @pytest.mark.asyncio
    async def test_add_and_remove_suggestion(self, store):
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(FakeGuild())

        await config_cmds.ConfigCog.add_suggestion.callback(cog, ctx, "Add a memes channel")
        ctx.respond.assert_awaited_with("✅ Suggestion added! (1/20)", ephemeral=True)

        await config_cmds.ConfigCog.remove_suggestion.callback(cog, ctx, "5")
        ctx.respond.assert_awaited_with("❌ Invalid suggestion ID.", ephemeral=True)

        await config_cmds.ConfigCog.remove_suggestion.callback(cog, ctx, "1")
        ctx.respond.assert_awaited_with("✅ Suggestion removed!", ephemeral=True)
        assert await store.list_suggestions(ctx.guild_id) == []

    @pytest.mark.asyncio
    async def test_list_suggestions(self, store):
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(FakeGuild())

        await config_cmds.ConfigCog.list_suggestions.callback(cog, ctx)
        ctx.respond.assert_awaited_with("No suggestions found.", ephemeral=True)

        await store.add_suggestion(ctx.guild_id, "first")
        await store.add_suggestion(ctx.guild_id, "second")
        await config_cmds.ConfigCog.list_suggestions.callback(cog, ctx)
        embed = ctx.respond.await_args.kwargs["embed"]
        assert embed.description == "1. first\n2. second"

    @pytest.mark.asyncio
    async def test_set_context_too_long(self, store):
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(FakeGuild())

        await config_cmds.ConfigCog.set_context.callback(cog, ctx, "x" * 201)

        ctx.respond.assert_awaited_once_with("❌ Context must be 200 characters or less.", ephemeral=True)
        assert await store.get_context(ctx.guild_id) == ""

    @pytest.mark.asyncio
    async def test_whitelist_flow(self, store):
        guild = FakeGuild()
        general = guild.add_channel("general")
        category = guild.add_category("Info")
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(guild)

        await config_cmds.ConfigCog.whitelist_channel.callback(cog, ctx, category)
        ctx.respond.assert_awaited_with("❌ Only text channels can be whitelisted.", ephemeral=True)

        await config_cmds.ConfigCog.whitelist_channel.callback(cog, ctx, general)
        ctx.respond.assert_awaited_with("✅ Added general to whitelist! (1/10)", ephemeral=True)

        await config_cmds.ConfigCog.whitelist_channel.callback(cog, ctx, general)
        ctx.respond.assert_awaited_with("❌ This channel is already whitelisted.", ephemeral=True)

        await config_cmds.ConfigCog.list_whitelisted.callback(cog, ctx)
        assert ctx.respond.await_args.kwargs["embed"].description == "general"

        await config_cmds.ConfigCog.unwhitelist_channel.callback(cog, ctx, general)
        ctx.respond.assert_awaited_with("✅ Removed general from whitelist!", ephemeral=True)

        await config_cmds.ConfigCog.list_whitelisted.callback(cog, ctx)
        ctx.respond.assert_awaited_with("No channels are whitelisted.", ephemeral=True)

    @pytest.mark.asyncio
    async def test_view_config(self, store):
        guild = FakeGuild()
        general = guild.add_channel("general")
        await store.set_context(guild.id, "Chess club")
        await store.whitelist_channel(guild.id, general.id)
        cog = config_cmds.ConfigCog(SimpleNamespace(), make_services(store))
        ctx = Ctx(guild)

        await config_cmds.ConfigCog.view_config.callback(cog, ctx)

        embed = ctx.respond.await_args.kwargs["embed"]
        values = {field.name: field.value for field in embed.fields}
        assert values == {
            "Context": "Chess club",
            "Suggestions": "No suggestions",
            "Whitelisted Channels": "general",
        }


class TestReformCog:
    @pytest.mark.asyncio
    async def test_reform_confirmed_by_owner_runs_workflow(self, store):
        guild = FakeGuild(owner_id=1)
        services = make_services(store)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(guild, user_id=1)

        async def respond(*args, **kwargs):
            view = kwargs["view"]
            assert isinstance(view, ReformConfirmationView)
            assert kwargs["ephemeral"] is True
            view.session.confirm(guild.owner_id)

        ctx.respond.side_effect = respond

        await reform_cmds.ReformCog.reform.callback(cog, ctx)

        services.workflow.run.assert_awaited_once_with(guild)
        ctx.followup.send.assert_awaited_once_with("✅ Reform confirmed. Beginning server restructuring...")
        assert not services.approval_gate.is_open(guild.id)

    @pytest.mark.asyncio
    async def test_second_reform_during_handoff_is_rejected(self, store):
        guild = FakeGuild(owner_id=1)
        services = make_services(store)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        first = Ctx(guild, user_id=1)
        second = Ctx(guild, user_id=1)
        seen = {}

        async def respond(*args, **kwargs):
            kwargs["view"].session.confirm(guild.owner_id)

        async def followup(content):
            seen["pending"] = services.is_reform_pending(guild.id)
            await reform_cmds.ReformCog.reform.callback(cog, second)

        first.respond.side_effect = respond
        first.followup.send.side_effect = followup

        await reform_cmds.ReformCog.reform.callback(cog, first)

        assert seen["pending"] is True
        second.respond.assert_awaited_once_with(reform_cmds.REFORM_ACTIVE_MESSAGE, ephemeral=True)
        services.workflow.run.assert_awaited_once_with(guild)
        assert not services.approval_gate.is_open(guild.id)

    @pytest.mark.asyncio
    async def test_guild_stays_reserved_while_workflow_runs(self, store):
        guild = FakeGuild(owner_id=1)
        services = make_services(store)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(guild, user_id=1)
        seen = []

        async def respond(*args, **kwargs):
            kwargs["view"].session.confirm(guild.owner_id)

        async def run(target):
            seen.append(services.is_reform_pending(target.id))

        ctx.respond.side_effect = respond
        services.workflow.run.side_effect = run

        await reform_cmds.ReformCog.reform.callback(cog, ctx)

        assert seen == [True]
        assert not services.is_reform_pending(guild.id)

    @pytest.mark.asyncio
    async def test_reform_timeout_cancels(self, store):
        guild = FakeGuild(owner_id=1)
        services = make_services(store, timeout_seconds=0.01)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(guild, user_id=1)

        await reform_cmds.ReformCog.reform.callback(cog, ctx)

        services.workflow.run.assert_not_awaited()
        ctx.followup.send.assert_awaited_once_with("❌ Reform not approved. Action cancelled.")

    @pytest.mark.asyncio
    async def test_reform_rejected_while_job_active(self, store):
        guild = FakeGuild()
        services = make_services(store)
        services.scheduler._register(GuildID(guild.id))
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(guild)

        await reform_cmds.ReformCog.reform.callback(cog, ctx)

        ctx.respond.assert_awaited_once_with(reform_cmds.REFORM_ACTIVE_MESSAGE, ephemeral=True)
        services.workflow.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reform_requires_admin(self, store):
        services = make_services(store)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(FakeGuild(), user_id=5, administrator=False)

        await reform_cmds.ReformCog.reform.callback(cog, ctx)

        ctx.respond.assert_awaited_once_with(ADMIN_ONLY_MESSAGE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_evaluate_server_edits_with_embed(self, store):
        guild = FakeGuild()
        services = make_services(store)
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(guild, administrator=False)

        await reform_cmds.ReformCog.evaluate_server.callback(cog, ctx)

        ctx.respond.assert_awaited_once_with("🔍 Evaluating the server... Please wait.")
        embed = ctx.edit.await_args.kwargs["embed"]
        assert embed.description == "7/10, decent."
        kwargs = services.llm_engine.evaluate_server.await_args.kwargs
        assert kwargs["guild_name"] == "Test Guild"
        assert kwargs["message_history"] == []

    @pytest.mark.asyncio
    async def test_evaluate_server_reports_errors(self, store):
        services = make_services(store)
        services.llm_engine.evaluate_server.side_effect = RuntimeError("endpoint down")
        cog = reform_cmds.ReformCog(SimpleNamespace(), services)
        ctx = Ctx(FakeGuild())

        await reform_cmds.ReformCog.evaluate_server.callback(cog, ctx)

        ctx.edit.assert_awaited_once_with(content="❌ An error occurred while evaluating the server.", embeds=[])

    @pytest.mark.asyncio
    async def test_delete_all_requires_bot_owner(self, store):
        guild = FakeGuild()
        guild.add_channel("general")
        cog = reform_cmds.ReformCog(SimpleNamespace(), make_services(store, bot_owner_id=99))
        ctx = Ctx(guild, user_id=1)

        await reform_cmds.ReformCog.delete_all.callback(cog, ctx)

        ctx.respond.assert_awaited_once_with("❌ You must be the bot owner to use this command.", ephemeral=True)
        assert guild.names_of(discord.ChannelType.text) == ["general"]

    @pytest.mark.asyncio
    async def test_delete_all_keeps_current_channel(self, store):
        guild = FakeGuild()
        guild.add_role("Mod")
        current = guild.add_channel("commands")
        guild.add_channel("general")
        guild.add_category("Info")
        cog = reform_cmds.ReformCog(SimpleNamespace(), make_services(store, bot_owner_id=99))
        ctx = Ctx(guild, user_id=99)
        ctx.channel = current

        await reform_cmds.ReformCog.delete_all.callback(cog, ctx)

        assert guild.channels == [current]
        assert guild.roles == [guild.default_role]
        ctx.edit.assert_awaited_once_with(content="✅ Server has been nuked successfully.")


@pytest.mark.asyncio
async def test_help_command_responds_with_embed():
    cog = general_cmds.GeneralCog(SimpleNamespace())
    ctx = Ctx(FakeGuild())

    await general_cmds.GeneralCog.help.callback(cog, ctx)

    assert ctx.respond.await_args.kwargs["embed"].title == "🤖 AIreform"


@pytest.mark.asyncio
async def test_command_error_handler_reports_bug():
    cog = events_listener.EventsListenerCog(SimpleNamespace())
    ctx = Ctx(FakeGuild())
    ctx.command = SimpleNamespace(qualified_name="reform")

    await cog.on_application_command_error(ctx, RuntimeError("boom"))

    ctx.respond.assert_awaited_once_with("A :bug: showed up while running this command.", ephemeral=True)
