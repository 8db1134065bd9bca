"""Tests for change_set_parsing module."""

import json

import pytest

from aireform.ai.prompt_builder import EXAMPLE_CHANGE_SET
from aireform.datatypes.reform_datatypes import ChannelKind, OverwriteSpec
from aireform.reform.change_set_parsing import parse_change_set
from aireform.reform.errors import PlannerResponseInvalid


class TestParseChangeSet:
    def test_minimal_roles_and_channels(self):
        change_set = parse_change_set(
            json.dumps(
                {
                    "roles": [{"name": "Mod", "permissions": ["KickMembers"]}],
                    "channels": [{"name": "general", "type": "text"}],
                }
            )
        )

        assert change_set.roles[0].name == "Mod"
        assert change_set.roles[0].permissions == ("KickMembers",)
        assert change_set.categories is None
        assert change_set.channels[0].type is ChannelKind.TEXT
        assert change_set.channels[0].category is None
        assert change_set.delete == ()

    def test_example_payload_parses(self):
        change_set = parse_change_set(json.dumps(EXAMPLE_CHANGE_SET))

        assert [c.name for c in change_set.categories] == [c["name"] for c in EXAMPLE_CHANGE_SET["categories"]]
        voice = [c for c in change_set.channels if c.type is ChannelKind.VOICE]
        assert voice
        overwrites = [o for c in change_set.channels for o in c.overwrites]
        assert all(isinstance(o, OverwriteSpec) for o in overwrites)

    def test_empty_sections_are_allowed(self):
        change_set = parse_change_set('{"roles": [], "delete": ["old"]}')
        assert change_set.roles == ()
        assert change_set.channels is None
        assert change_set.delete == ("old",)

    def test_surrounding_whitespace_is_ignored(self):
        change_set = parse_change_set('\n  {"categories": [{"name": "Info"}]}  \n')
        assert change_set.categories[0].name == "Info"

    def test_missing_type_defaults_to_text(self):
        change_set = parse_change_set('{"channels": [{"name": "chat", "description": null}]}')
        assert change_set.channels[0].type is ChannelKind.TEXT
        assert change_set.channels[0].description == ""

    def test_null_sections_are_treated_as_absent(self):
        change_set = parse_change_set(
            json.dumps(
                {
                    "roles": None,
                    "categories": None,
                    "channels": [{"name": "general", "type": "text", "permissions": None}],
                    "delete": None,
                }
            )
        )

        assert change_set.roles is None
        assert change_set.categories is None
        assert [c.name for c in change_set.channels] == ["general"]
        assert change_set.channels[0].overwrites == ()
        assert change_set.delete == ()

    def test_only_null_sections_rejected(self):
        with pytest.raises(PlannerResponseInvalid):
            parse_change_set('{"roles": null, "channels": null}')

    @pytest.mark.parametrize("kind", ["announcement", "forum", "stage", "TEXT", None])
    def test_non_voice_types_become_text(self, kind):
        change_set = parse_change_set(json.dumps({"channels": [{"name": "news", "type": kind}]}))
        assert change_set.channels[0].type is ChannelKind.TEXT

    def test_voice_type_is_kept(self):
        change_set = parse_change_set('{"channels": [{"name": "Lounge", "type": "Voice"}]}')
        assert change_set.channels[0].type is ChannelKind.VOICE

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "not json",
            "```json\n{\"roles\": []}\n```",
            "[]",
            '"roles"',
            "{}",
            '{"delete": ["general"]}',
        ],
    )
    def test_invalid_responses_rejected(self, raw):
        with pytest.raises(PlannerResponseInvalid):
            parse_change_set(raw)

    @pytest.mark.parametrize(
        "payload",
        [
            {"roles": [{"permissions": ["KickMembers"]}]},
            {"roles": "Mod"},
            {"channels": [{"name": "x", "permissions": [{"role": "Mod", "permissions": {"SendMessages": "yes"}}]}]},
            {"categories": [{"name": ""}]},
        ],
    )
    def test_schema_violations_rejected_whole(self, payload):
        with pytest.raises(PlannerResponseInvalid):
            parse_change_set(json.dumps(payload))
