"""Parse and validate the planner's change-set before any mutation happens."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import jsonschema
from jsonschema import ValidationError as SchemaValidationError

from aireform.datatypes.reform_datatypes import (
    CategorySpec,
    ChangeSet,
    ChannelKind,
    ChannelSpec,
    OverwriteSpec,
    RoleSpec,
)
from aireform.reform.errors import PlannerResponseInvalid
from aireform.util.logger import get_logger

logger = get_logger("change_set_parsing")

STRUCTURE_SECTIONS = ("roles", "categories", "channels")

_NAME = {"type": "string", "minLength": 1, "maxLength": 100}

CHANGE_SET_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "roles": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "name": _NAME,
                    "permissions": {"type": ["array", "null"], "items": {"type": "string"}},
                },
                "required": ["name"],
            },
        },
        "categories": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {"name": _NAME},
                "required": ["name"],
            },
        },
        "channels": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "name": _NAME,
                    "type": {"type": ["string", "null"]},
                    "category": {"type": ["string", "null"]},
                    "description": {"type": ["string", "null"]},
                    "permissions": {
                        "type": ["array", "null"],
                        "items": {
                            "type": "object",
                            "properties": {
                                "role": _NAME,
                                "permissions": {
                                    "type": "object",
                                    "additionalProperties": {"type": "boolean"},
                                },
                            },
                            "required": ["role", "permissions"],
                        },
                    },
                },
                "required": ["name"],
            },
        },
        "delete": {"type": ["array", "null"], "items": {"type": "string"}},
    },
    "anyOf": [{"required": [section]} for section in STRUCTURE_SECTIONS],
}


def _extract_json_payload(raw: str) -> Any:
    """Decode the completion text as strict JSON."""
    try:
        return json.loads((raw or "").strip())
    except json.JSONDecodeError as exc:
        logger.warning("[EXTRACT] Parsing failed: %s", exc)
        raise PlannerResponseInvalid(f"Failed to parse AI response: {exc}") from exc


def _optional_section(payload: Dict[str, Any], key: str) -> Optional[List[Dict[str, Any]]]:
    value = payload.get(key)
    return list(value) if value is not None else None


def channel_kind(value: Optional[str]) -> ChannelKind:
    """Anything other than "voice" is created as a text channel."""
    if str(value or "").strip().lower() == ChannelKind.VOICE.value:
        return ChannelKind.VOICE
    return ChannelKind.TEXT


def _build_channel(item: Dict[str, Any]) -> ChannelSpec:
    overwrites: Tuple[OverwriteSpec, ...] = tuple(
        OverwriteSpec(role=entry["role"], permissions=dict(entry["permissions"]))
        for entry in item.get("permissions") or []
    )
    return ChannelSpec(
        name=item["name"],
        type=channel_kind(item.get("type")),
        category=item.get("category") or None,
        description=item.get("description") or "",
        overwrites=overwrites,
    )


def parse_change_set(response: str) -> ChangeSet:
    """Turn the planner's completion text into a validated :class:`ChangeSet`.

    The whole payload is validated against :data:`CHANGE_SET_SCHEMA` before
    anything is built, so a partially valid response is rejected outright.

    Raises:
        PlannerResponseInvalid: If the text is not JSON, is not an object,
            fails the schema, or contains none of roles/categories/channels.
    """
    logger.debug("[PARSE] Parsing change-set response (%d chars)", len(response or ""))
    payload = _extract_json_payload(response)

    if not isinstance(payload, dict):
        raise PlannerResponseInvalid(f"Invalid AI response structure - expected an object, got {type(payload).__name__}.")

    if not any(payload.get(section) is not None for section in STRUCTURE_SECTIONS):
        raise PlannerResponseInvalid("Invalid AI response structure - missing required sections.")

    try:
        jsonschema.validate(instance=payload, schema=CHANGE_SET_SCHEMA)
    except SchemaValidationError as exc:
        logger.error("[PARSE] Schema validation failed: %s", exc.message)
        raise PlannerResponseInvalid(f"Invalid AI response structure - {exc.message}") from exc

    roles = _optional_section(payload, "roles")
    categories = _optional_section(payload, "categories")
    channels = _optional_section(payload, "channels")

    change_set = ChangeSet(
        roles=tuple(RoleSpec(name=r["name"], permissions=tuple(r.get("permissions") or ())) for r in roles)
        if roles is not None else None,
        categories=tuple(CategorySpec(name=c["name"]) for c in categories) if categories is not None else None,
        channels=tuple(_build_channel(c) for c in channels) if channels is not None else None,
        delete=tuple(payload.get("delete") or ()),
    )
    logger.debug(
        "[PARSE] Parsed change-set: %d roles, %d categories, %d channels, %d deletions",
        len(change_set.roles or ()),
        len(change_set.categories or ()),
        len(change_set.channels or ()),
        len(change_set.delete),
    )
    return change_set
