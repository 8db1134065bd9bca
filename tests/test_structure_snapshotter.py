"""Tests for StructureSnapshotter."""

import discord

from aireform.datatypes.reform_datatypes import ChannelKind
from aireform.reform.structure_snapshotter import StructureSnapshotter
from fakes import FakeGuild


def test_capture_normalizes_guild_structure():
    guild = FakeGuild()
    guild.add_role("Mod")
    info = guild.add_category("Info")
    guild.add_channel("rules", category=info, topic="Read me")
    guild.add_channel("Lounge", discord.ChannelType.voice)
    guild.add_channel("Stage", discord.ChannelType.stage_voice, category=info)

    snapshot = StructureSnapshotter().capture(guild)

    assert [r.name for r in snapshot.roles] == ["Mod"]
    assert [(c.name, c.id) for c in snapshot.categories] == [("Info", info.id)]
    assert [(c.name, c.type, c.category, c.description) for c in snapshot.channels] == [
        ("rules", ChannelKind.TEXT, "Info", "Read me"),
        ("Lounge", ChannelKind.VOICE, None, ""),
        ("Stage", ChannelKind.VOICE, "Info", ""),
    ]


def test_payload_shape():
    guild = FakeGuild()
    info = guild.add_category("Info")
    guild.add_channel("general", category=info)
    guild.add_channel("random")

    payload = StructureSnapshotter().capture(guild).to_payload()

    assert payload["roles"] == []
    assert payload["categories"] == [{"name": "Info", "id": str(info.id)}]
    assert payload["channels"] == [
        {"name": "general", "type": "text", "category": "Info", "description": ""},
        {"name": "random", "type": "text", "description": ""},
    ]
