"""
Data structures for the server reform workflow.

This module defines the immutable structure snapshot fed to the planner, the
validated change-set the planner returns, the intermediate records the
structure applier uses to resolve forward references, and the report it
produces.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ApprovalOutcome(Enum):
    """Final state of an approval session."""

    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"

    def __str__(self) -> str:
        return self.value


class ChannelKind(Enum):
    """Channel flavours the planner may request."""

    TEXT = "text"
    VOICE = "voice"

    def __str__(self) -> str:
        return self.value


# -------------------- Snapshot --------------------

@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    name: str


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    name: str
    id: int


@dataclass(frozen=True, slots=True)
class ChannelSnapshot:
    name: str
    type: ChannelKind
    category: Optional[str]
    description: str = ""


@dataclass(frozen=True, slots=True)
class StructureSnapshot:
    """Normalized, read-only view of a guild's roles, categories and channels."""

    roles: Tuple[RoleSnapshot, ...] = ()
    categories: Tuple[CategorySnapshot, ...] = ()
    channels: Tuple[ChannelSnapshot, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready mapping sent to the planner."""
        channels = []
        for channel in self.channels:
            entry: Dict[str, Any] = {"name": channel.name, "type": channel.type.value}
            if channel.category is not None:
                entry["category"] = channel.category
            entry["description"] = channel.description
            channels.append(entry)
        return {
            "roles": [asdict(role) for role in self.roles],
            "categories": [{"name": category.name, "id": str(category.id)} for category in self.categories],
            "channels": channels,
        }


# -------------------- Change-set --------------------

@dataclass(frozen=True, slots=True)
class RoleSpec:
    """A role the planner wants to exist; permissions are capability flag names."""

    name: str
    permissions: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CategorySpec:
    name: str


@dataclass(frozen=True, slots=True)
class OverwriteSpec:
    """Per-role allow (True) / deny (False) mapping for one channel."""

    role: str
    permissions: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ChannelSpec:
    name: str
    type: ChannelKind = ChannelKind.TEXT
    category: Optional[str] = None
    description: str = ""
    overwrites: Tuple[OverwriteSpec, ...] = ()


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Validated planner output.

    ``None`` for a section means the planner did not include it, which is
    distinct from an empty list.
    """

    roles: Optional[Tuple[RoleSpec, ...]] = None
    categories: Optional[Tuple[CategorySpec, ...]] = None
    channels: Optional[Tuple[ChannelSpec, ...]] = None
    delete: Tuple[str, ...] = ()


# -------------------- Applier records --------------------

@dataclass(slots=True)
class PendingChannel:
    """A channel created in this run whose category and overwrites still reference
    categories and roles by name."""

    channel: Any
    category_name: Optional[str] = None
    overwrites: Tuple[OverwriteSpec, ...] = ()


@dataclass(slots=True)
class ItemFailure:
    """A single mutation that failed during apply."""

    stage: str
    name: str
    error: str


@dataclass(slots=True)
class ApplyReport:
    """Outcome of one :meth:`StructureApplier.apply` run."""

    deleted: List[str] = field(default_factory=list)
    created_roles: Dict[str, int] = field(default_factory=dict)
    created_categories: List[str] = field(default_factory=list)
    category_ids: Dict[str, int] = field(default_factory=dict)
    created_channels: List[str] = field(default_factory=list)
    moved_channels: List[Tuple[str, str]] = field(default_factory=list)
    permissioned_channels: List[str] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def creation_count(self) -> int:
        return len(self.created_roles) + len(self.created_categories) + len(self.created_channels)

    def summary(self) -> str:
        return (
            f"{len(self.deleted)} deleted, {len(self.created_roles)} roles, "
            f"{len(self.created_categories)} categories, {len(self.created_channels)} channels, "
            f"{len(self.moved_channels)} moved, {len(self.failures)} failed"
        )
