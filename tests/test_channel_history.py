"""Tests for reading whitelisted channel history."""

import discord
import pytest

from aireform.history.channel_history import fetch_whitelisted_history
from fakes import FakeGuild, FakeMessage


@pytest.mark.asyncio
async def test_merges_channels_newest_first_and_skips_bots():
    guild = FakeGuild()
    general = guild.add_channel("general")
    general.messages = [FakeMessage("ana", "newest", minutes_ago=1), FakeMessage("bot", "beep", bot=True, minutes_ago=2)]
    memes = guild.add_channel("memes")
    memes.messages = [FakeMessage("ben", "middle", minutes_ago=5), FakeMessage("cy", "oldest", minutes_ago=30)]

    history = await fetch_whitelisted_history(guild, [general.id, memes.id], limit=50)

    assert [(m["channel"], m["author"], m["content"]) for m in history] == [
        ("general", "ana", "newest"),
        ("memes", "ben", "middle"),
        ("memes", "cy", "oldest"),
    ]
    assert history[0]["timestamp"] > history[1]["timestamp"]


@pytest.mark.asyncio
async def test_limit_applies_across_channels():
    guild = FakeGuild()
    a = guild.add_channel("a")
    a.messages = [FakeMessage("x", f"a{i}", minutes_ago=i * 2) for i in range(3)]
    b = guild.add_channel("b")
    b.messages = [FakeMessage("y", f"b{i}", minutes_ago=i * 2 + 1) for i in range(3)]

    history = await fetch_whitelisted_history(guild, [a.id, b.id], limit=3)

    assert [m["content"] for m in history] == ["a0", "b0", "a1"]


@pytest.mark.asyncio
async def test_missing_and_non_text_channels_are_skipped():
    guild = FakeGuild()
    category = guild.add_category("Info")

    assert await fetch_whitelisted_history(guild, [category.id, 123456789], limit=10) == []


@pytest.mark.asyncio
async def test_channel_errors_do_not_stop_other_channels():
    guild = FakeGuild()
    broken = guild.add_channel("broken")

    async def failing_history(limit=None):
        raise discord.DiscordException("missing access")
        yield  # pragma: no cover

    broken.history = failing_history
    fine = guild.add_channel("fine")
    fine.messages = [FakeMessage("ana", "hello")]

    history = await fetch_whitelisted_history(guild, [broken.id, fine.id])

    assert [m["content"] for m in history] == ["hello"]
