"""Chat-completion message builders for evaluation and reform planning."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)

from aireform.datatypes.reform_datatypes import StructureSnapshot

EXAMPLE_CHANGE_SET: Dict[str, Any] = {
    "roles": [
        {"name": "Server Admin", "permissions": ["Administrator"]},
        {
            "name": "Moderator",
            "permissions": ["ManageMessages", "KickMembers", "BanMembers", "ManageNicknames", "ViewAuditLog"],
        },
        {
            "name": "Event Manager",
            "permissions": ["ManageEvents", "ManageThreads", "CreatePublicThreads", "CreatePrivateThreads"],
        },
        {
            "name": "Regular Member",
            "permissions": ["ViewChannel", "SendMessages", "EmbedLinks", "AttachFiles", "AddReactions", "UseExternalEmojis"],
        },
    ],
    "categories": [
        {"name": "INFORMATION"},
        {"name": "COMMUNITY"},
        {"name": "EVENTS"},
        {"name": "VOICE LOUNGES"},
    ],
    "channels": [
        {
            "name": "welcome",
            "type": "text",
            "category": "INFORMATION",
            "description": "Welcome to our server! Please read the rules.",
            "permissions": [{"role": "Regular Member", "permissions": {"SendMessages": False, "AddReactions": True}}],
        },
        {
            "name": "rules",
            "type": "text",
            "category": "INFORMATION",
            "description": "Server rules and guidelines",
            "permissions": [{"role": "Regular Member", "permissions": {"SendMessages": False, "AddReactions": False}}],
        },
        {
            "name": "announcements",
            "type": "text",
            "category": "INFORMATION",
            "description": "Important server announcements",
            "permissions": [{"role": "Regular Member", "permissions": {"SendMessages": False, "AddReactions": True}}],
        },
        {"name": "general-chat", "type": "text", "category": "COMMUNITY", "description": "General discussion channel"},
        {"name": "memes", "type": "text", "category": "COMMUNITY", "description": "Share your favorite memes"},
        {
            "name": "event-planning",
            "type": "text",
            "category": "EVENTS",
            "description": "Plan and discuss upcoming events",
            "permissions": [{"role": "Event Manager", "permissions": {"ManageMessages": True, "MentionEveryone": True}}],
        },
        {"name": "Gaming Lounge", "type": "voice", "category": "VOICE LOUNGES"},
        {"name": "Chill Zone", "type": "voice", "category": "VOICE LOUNGES"},
    ],
    "delete": ["old-announcements", "outdated-rules", "archived-chat"],
}

REFORM_OUTPUT_RULES = (
    "Respond with valid JSON for new/modified structures only. Do not duplicate existing roles/channels "
    "unless modifications are needed. Perform a full reform, with lots of new changes. To give a role admin "
    "perms, include Administrator in the permissions array. Do NOT include text before or after the JSON, "
    "return the JSON alone, with no markdown. Do not ask questions."
)


def _system(content: str) -> ChatCompletionSystemMessageParam:
    return {"role": "system", "content": content}


def _user(content: str) -> ChatCompletionUserMessageParam:
    return {"role": "user", "content": content}


def build_reform_messages(
    snapshot: StructureSnapshot,
    *,
    context: str,
    suggestions: Sequence[str],
    locale: str,
) -> List[ChatCompletionMessageParam]:
    """Build the five planner messages in their fixed order.

    1. assistant role instruction
    2. guild context and an example output
    3. the current suggestion list (empty content when there are none)
    4. strict output rules
    5. the user request carrying the locale and the snapshot as JSON
    """
    suggestions_block = ""
    if suggestions:
        suggestions_block = "Suggestions to implement (if empty, there's none):\n" + "\n".join(suggestions) + "\n\n"

    snapshot_json = json.dumps(snapshot.to_payload(), ensure_ascii=False)
    return [
        _system("You are assisting in a server reform."),
        _system(f"CONTEXT: {context}\nJSON example:\n{json.dumps(EXAMPLE_CHANGE_SET, indent=2)}"),
        _system(suggestions_block),
        _system(REFORM_OUTPUT_RULES),
        _user(
            "Restructure this server considering the structure I'll give you and the provided suggestions "
            "(if they exist). Only provide new or modified elements. Do NOT include text before or after the "
            "JSON, don't use markdown. Just the JSON alone. "
            f"Language: {locale}. Server structure: {snapshot_json}"
        ),
    ]


def build_evaluation_messages(
    *,
    guild_name: str,
    context: str,
    guild_details: Dict[str, Any],
    message_history: Sequence[Dict[str, Any]],
    locale: str,
) -> List[ChatCompletionMessageParam]:
    """Build the messages asking the model to rate and critique the guild."""
    return [
        _system(
            f'You\'re a Discord bot assisting a server named "{guild_name}". {context}\n\n'
            f"Server details: {json.dumps(guild_details, ensure_ascii=False)}. "
            f"Recent message history: {json.dumps(list(message_history), ensure_ascii=False)}. "
            "Provide realistic, concise feedback as if you are observing server dynamics. No emojis or markdown. "
            "You can give a rating of 0 to 10 to the server. Make this rating realistic, and dependent on many "
            "different things."
        ),
        _user(f"Talk in this language: {locale}. Evaluate this server and suggest improvements. Keep it short and realistic."),
    ]
