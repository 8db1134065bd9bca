"""Tests for the snowflake id wrappers."""

import pytest

from aireform.datatypes.discord_datatypes import ChannelID, GuildID, UserID


def test_equality_across_representations():
    assert GuildID(123) == GuildID("123")
    assert GuildID(123) == 123
    assert GuildID(123) == "123"
    assert GuildID(GuildID(" 123 ")) == GuildID(123)


def test_different_kinds_are_not_equal():
    assert GuildID(1) != ChannelID(1)


def test_hash_matches_string_form():
    assert {GuildID(5): "x"}[GuildID("5")] == "x"
    assert hash(UserID(5)) == hash("5")


def test_wrapper_keyed_maps_accept_string_or_wrapped_ids():
    keyed = {GuildID(5): "x"}
    assert "5" in keyed
    assert GuildID(5) in keyed
    assert GuildID(5) in {GuildID(5)}


def test_to_int_and_str():
    cid = ChannelID("987654321098765432")
    assert cid.to_int() == 987654321098765432
    assert str(cid) == "987654321098765432"


@pytest.mark.parametrize("value", [True, None, 1.5, "abc"])
def test_invalid_values(value):
    with pytest.raises(ValueError):
        GuildID(value)
