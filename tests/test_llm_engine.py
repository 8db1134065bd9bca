"""Tests for the prompt builders and the completion client wrapper."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from aireform.ai.llm_engine import LLMEngine
from aireform.ai.prompt_builder import build_evaluation_messages, build_reform_messages
from aireform.configuration.settings import AISettings
from aireform.datatypes.reform_datatypes import ChannelKind, ChannelSnapshot, RoleSnapshot, StructureSnapshot
from aireform.reform.errors import PlannerResponseInvalid

SNAPSHOT = StructureSnapshot(
    roles=(RoleSnapshot("Mod"),),
    channels=(ChannelSnapshot("general", ChannelKind.TEXT, None, "chat"),),
)


def make_client(content):
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    create = AsyncMock(return_value=response)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), create


class TestBuildReformMessages:
    def test_five_messages_in_fixed_order(self):
        messages = build_reform_messages(SNAPSHOT, context="Chess club", suggestions=["Add a lobby"], locale="fr")

        assert [m["role"] for m in messages] == ["system", "system", "system", "system", "user"]
        assert "Chess club" in messages[1]["content"]
        assert "Add a lobby" in messages[2]["content"]
        assert "valid JSON" in messages[3]["content"]
        assert "Language: fr" in messages[4]["content"]
        assert json.dumps(SNAPSHOT.to_payload(), ensure_ascii=False) in messages[4]["content"]

    def test_empty_suggestions_message(self):
        messages = build_reform_messages(SNAPSHOT, context="", suggestions=[], locale="en-US")
        assert messages[2]["content"] == ""


def test_evaluation_messages_include_history():
    history = [{"channel": "general", "author": "ana", "content": "hi", "timestamp": 1}]
    messages = build_evaluation_messages(
        guild_name="Chess", context="club", guild_details={"id": "1"}, message_history=history, locale="de"
    )

    assert messages[0]["role"] == "system"
    assert '"Chess"' in messages[0]["content"]
    assert json.dumps(history) in messages[0]["content"]
    assert "de" in messages[1]["content"]


@pytest.mark.asyncio
async def test_plan_reform_parses_completion():
    client, create = make_client('{"roles": [{"name": "Mod", "permissions": ["KickMembers"]}]}')
    engine = LLMEngine(AISettings({"model_name": "test-model"}), client=client)

    change_set = await engine.plan_reform(SNAPSHOT, context="", suggestions=[], locale="en-US")

    assert change_set.roles[0].name == "Mod"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert len(kwargs["messages"]) == 5


@pytest.mark.asyncio
async def test_plan_reform_rejects_prose():
    client, _ = make_client("Sure! Here is your new server layout.")
    engine = LLMEngine(AISettings({}), client=client)

    with pytest.raises(PlannerResponseInvalid):
        await engine.plan_reform(SNAPSHOT, context="", suggestions=[], locale="en-US")


@pytest.mark.asyncio
async def test_evaluate_server_falls_back_on_empty_completion():
    client, _ = make_client(None)
    engine = LLMEngine(AISettings({}), client=client)

    text = await engine.evaluate_server(
        guild_name="Chess", context="", guild_details={}, message_history=[], locale="en-US"
    )

    assert text == "No response from AI."


@pytest.mark.asyncio
async def test_complete_without_choices():
    create = AsyncMock(return_value=SimpleNamespace(choices=[]))
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    engine = LLMEngine(AISettings({}), client=client)

    assert await engine.complete([{"role": "user", "content": "hi"}]) == ""
