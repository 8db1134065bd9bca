"""
Apply a validated change-set to a live guild.

Passes run strictly in this order, each one sequentially over its items:

1. deletions (channels or categories by exact name; absent names skipped)
2. role creation (existing roles left untouched)
3. category creation (existing categories reused by id)
4. channel creation with locked-down default overwrites
5. category assignment of the channels created in pass 4
6. per-role overwrites on the channels created in pass 4

Passes 5 and 6 resolve names recorded as :class:`PendingChannel` entries in
pass 4, because the categories and roles they reference may only exist once
passes 2 and 3 have finished. Every item is isolated: a failed API call is
logged and recorded in the :class:`ApplyReport` and the run carries on. The
apply is not transactional.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

import discord

from aireform.datatypes.reform_datatypes import (
    ApplyReport,
    ChangeSet,
    ChannelKind,
    ItemFailure,
    PendingChannel,
)
from aireform.reform.errors import MutationError
from aireform.reform import permissions
from aireform.util.discord_utils import find_by_name, find_role, is_category
from aireform.util.logger import get_logger

logger = get_logger("structure_applier")

ProgressCallback = Callable[[str], Awaitable[None]]

AUDIT_REASON = "AIreform server reform"


async def _no_progress(_: str) -> None:
    return None


class StructureApplier:
    """
    Executes :class:`ChangeSet` objects against a guild.

    Args:
        progress: Awaited with a human-readable line at the start of each pass
            that has work to do.
    """

    def __init__(self, progress: Optional[ProgressCallback] = None) -> None:
        self._progress = progress or _no_progress

    async def apply(
        self,
        guild: discord.Guild,
        change_set: ChangeSet,
        existing_role_names: Optional[Iterable[str]] = None,
        existing_category_names: Optional[Iterable[str]] = None,
        existing_channel_names: Optional[Iterable[str]] = None,
    ) -> ApplyReport:
        """Apply ``change_set`` to ``guild``.

        The ``existing_*`` name collections decide which items are already
        present. When omitted they are read from the guild after the deletion
        pass. Names created during this run are added to them, so a change-set
        naming the same item twice creates it once.
        """
        report = ApplyReport()

        deleted_ids = await self._delete_pass(guild, change_set.delete, report)

        remaining = [c for c in guild.channels if c.id not in deleted_ids]
        live_categories = [c for c in remaining if is_category(c)]
        role_names: Set[str] = set(existing_role_names) if existing_role_names is not None else {r.name for r in guild.roles}
        category_names: Set[str] = (
            set(existing_category_names) if existing_category_names is not None else {c.name for c in live_categories}
        )
        channel_names: Set[str] = (
            set(existing_channel_names)
            if existing_channel_names is not None
            else {c.name for c in remaining if not is_category(c)}
        )

        created_roles: Dict[str, Any] = {}
        if change_set.roles is not None:
            await self._role_pass(guild, change_set, role_names, created_roles, report)

        if change_set.categories is not None:
            await self._category_pass(guild, change_set, category_names, live_categories, report)

        pending: List[PendingChannel] = []
        if change_set.channels is not None:
            pending = await self._channel_pass(guild, change_set, channel_names, report)

        await self._move_pass(pending, live_categories, report)
        await self._permission_pass(guild, pending, created_roles, report)

        logger.info("[STRUCTURE APPLIER] Guild %s: %s", guild.id, report.summary())
        return report

    # --------------------------
    # Helpers
    # --------------------------
    def _record_failure(self, report: ApplyReport, stage: str, name: str, exc: Exception) -> None:
        error = MutationError(stage, name, exc)
        logger.error("[STRUCTURE APPLIER] %s", error)
        report.failures.append(ItemFailure(stage=stage, name=name, error=str(exc)))

    # --------------------------
    # Passes
    # --------------------------
    async def _delete_pass(self, guild: discord.Guild, names: Iterable[str], report: ApplyReport) -> Set[int]:
        names = list(names)
        deleted_ids: Set[int] = set()
        if not names:
            return deleted_ids

        await self._progress("🗑️ Removing old channels and categories...")
        for name in names:
            target = find_by_name((c for c in guild.channels if c.id not in deleted_ids), name)
            if target is None:
                logger.debug("[STRUCTURE APPLIER] Nothing named %r to delete", name)
                continue
            try:
                await target.delete(reason=AUDIT_REASON)
            except Exception as exc:
                self._record_failure(report, "delete", name, exc)
                continue
            deleted_ids.add(target.id)
            report.deleted.append(name)
            logger.info("[STRUCTURE APPLIER] Deleted %s: %s", "category" if is_category(target) else "channel", name)
        return deleted_ids

    async def _role_pass(
        self,
        guild: discord.Guild,
        change_set: ChangeSet,
        role_names: Set[str],
        created_roles: Dict[str, Any],
        report: ApplyReport,
    ) -> None:
        await self._progress("👥 Creating new roles...")
        for spec in change_set.roles or ():
            if spec.name in role_names:
                logger.debug("[STRUCTURE APPLIER] Role %r already exists; leaving it untouched", spec.name)
                continue
            try:
                role = await guild.create_role(
                    name=spec.name,
                    permissions=permissions.role_permissions(spec.permissions),
                    reason=AUDIT_REASON,
                )
            except Exception as exc:
                self._record_failure(report, "create role", spec.name, exc)
                continue
            role_names.add(spec.name)
            created_roles[spec.name] = role
            report.created_roles[spec.name] = role.id
            logger.info("[STRUCTURE APPLIER] Created role: %s", spec.name)

    async def _category_pass(
        self,
        guild: discord.Guild,
        change_set: ChangeSet,
        category_names: Set[str],
        live_categories: List[Any],
        report: ApplyReport,
    ) -> None:
        await self._progress("📁 Creating categories...")
        for spec in change_set.categories or ():
            if spec.name in category_names:
                existing = find_by_name(live_categories, spec.name)
                if existing is not None:
                    report.category_ids.setdefault(spec.name, existing.id)
                continue
            try:
                category = await guild.create_category(spec.name, reason=AUDIT_REASON)
            except Exception as exc:
                self._record_failure(report, "create category", spec.name, exc)
                continue
            category_names.add(spec.name)
            live_categories.append(category)
            report.category_ids[spec.name] = category.id
            report.created_categories.append(spec.name)
            logger.info("[STRUCTURE APPLIER] Created category: %s", spec.name)

    async def _channel_pass(
        self,
        guild: discord.Guild,
        change_set: ChangeSet,
        channel_names: Set[str],
        report: ApplyReport,
    ) -> List[PendingChannel]:
        await self._progress("💬 Creating channels...")
        pending: List[PendingChannel] = []
        for spec in change_set.channels or ():
            if spec.name in channel_names:
                logger.debug("[STRUCTURE APPLIER] Channel %r already exists; skipping", spec.name)
                continue
            try:
                overwrites = permissions.creation_overwrites(guild)
                if spec.type is ChannelKind.VOICE:
                    channel = await guild.create_voice_channel(spec.name, overwrites=overwrites, reason=AUDIT_REASON)
                else:
                    channel = await guild.create_text_channel(
                        spec.name,
                        topic=spec.description,
                        overwrites=overwrites,
                        reason=AUDIT_REASON,
                    )
            except Exception as exc:
                self._record_failure(report, "create channel", spec.name, exc)
                continue
            channel_names.add(spec.name)
            report.created_channels.append(spec.name)
            pending.append(PendingChannel(channel=channel, category_name=spec.category, overwrites=spec.overwrites))
            logger.info("[STRUCTURE APPLIER] Created channel: %s", spec.name)
        return pending

    async def _move_pass(self, pending: List[PendingChannel], live_categories: List[Any], report: ApplyReport) -> None:
        to_move = [p for p in pending if p.category_name]
        if not to_move:
            return

        await self._progress("📋 Organizing channels into categories...")
        for item in to_move:
            category_name = item.category_name or ""
            category_id = report.category_ids.get(category_name)
            if category_id is None:
                existing = find_by_name(live_categories, category_name)
                category_id = existing.id if existing is not None else None
            if category_id is None:
                logger.warning(
                    "[STRUCTURE APPLIER] No category %r for channel %s; leaving it uncategorized",
                    category_name,
                    item.channel.name,
                )
                continue
            try:
                await item.channel.edit(category=discord.Object(id=category_id), reason=AUDIT_REASON)
            except Exception as exc:
                self._record_failure(report, "move channel", item.channel.name, exc)
                continue
            report.moved_channels.append((item.channel.name, category_name))
            logger.info("[STRUCTURE APPLIER] Moved channel %s to category %s", item.channel.name, category_name)

    async def _permission_pass(
        self,
        guild: discord.Guild,
        pending: List[PendingChannel],
        created_roles: Dict[str, Any],
        report: ApplyReport,
    ) -> None:
        to_permission = [p for p in pending if p.overwrites]
        if not to_permission:
            return

        await self._progress("🔒 Applying channel permissions...")
        for item in to_permission:
            channel = item.channel
            try:
                await channel.edit(overwrites=permissions.baseline_overwrites(guild), reason=AUDIT_REASON)
            except Exception as exc:
                self._record_failure(report, "reset permissions", channel.name, exc)
                continue

            for overwrite_spec in item.overwrites:
                role = created_roles.get(overwrite_spec.role) or find_role(guild, overwrite_spec.role)
                if role is None:
                    logger.warning(
                        "[STRUCTURE APPLIER] Unknown role %r in overwrites for %s; skipping",
                        overwrite_spec.role,
                        channel.name,
                    )
                    continue
                try:
                    await channel.set_permissions(
                        role,
                        overwrite=permissions.overwrite_from_mapping(overwrite_spec.permissions),
                        reason=AUDIT_REASON,
                    )
                except Exception as exc:
                    self._record_failure(report, "set permissions", f"{channel.name}/{overwrite_spec.role}", exc)
            report.permissioned_channels.append(channel.name)
            logger.info("[STRUCTURE APPLIER] Applied permissions for channel: %s", channel.name)
