"""
Multi-party approval for server reforms.

An :class:`ApprovalSession` is a small state machine::

    OPEN --confirm() reaches quorum--> CONFIRMED
    OPEN --deadline passes----------> TIMED_OUT
    OPEN --reject()-----------------> REJECTED

Confirmations arrive through :meth:`ApprovalSession.confirm` (the reform
view's button calls it) and the deadline is enforced by
:meth:`ApprovalSession.wait`. :class:`ApprovalGate` owns the live sessions,
keyed by guild id, and guarantees at most one per guild.
"""

from __future__ import annotations

import asyncio
import math
from contextlib import asynccontextmanager
from typing import (
    AbstractSet,
    AsyncIterator,
    Awaitable,
    Callable,
    FrozenSet,
    Iterable,
    MutableMapping,
    Optional,
    Set,
)

import discord

from aireform.datatypes.discord_datatypes import GuildID, UserID
from aireform.datatypes.reform_datatypes import ApprovalOutcome
from aireform.reform.errors import ApprovalRejected, ApprovalSessionActiveError, ApprovalTimeout
from aireform.util.logger import get_logger

logger = get_logger("approval_gate")


def required_quorum(admin_count: int) -> int:
    """Half of the administrators, rounded up (never below one)."""
    return max(1, math.ceil(admin_count / 2))


class ApprovalSession:
    """
    Confirmation collector for one reform request.

    Args:
        guild_id: Guild the reform targets.
        owner_id: Guild owner; their confirmation is always required.
        admin_ids: Non-bot administrators at the time the session opened. The
            set is frozen for the lifetime of the session.
        timeout_seconds: Length of the confirmation window.
    """

    def __init__(
        self,
        guild_id: GuildID,
        owner_id: UserID,
        admin_ids: Iterable[UserID | int],
        *,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.guild_id = GuildID(guild_id)
        self.owner_id = UserID(owner_id)
        self.admin_ids: FrozenSet[UserID] = frozenset(UserID(a) for a in admin_ids)
        self.approver_ids: FrozenSet[UserID] = self.admin_ids | {self.owner_id}
        self.owner_only = self.admin_ids <= {self.owner_id}
        self.quorum = 1 if self.owner_only else required_quorum(len(self.admin_ids))
        self.timeout_seconds = timeout_seconds
        self.confirmed_ids: Set[UserID] = set()
        self.state: Optional[ApprovalOutcome] = None
        self._decided = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self.state is None

    @property
    def is_satisfied(self) -> bool:
        """Owner confirmed and at least ``quorum`` distinct approvers confirmed."""
        return self.owner_id in self.confirmed_ids and len(self.confirmed_ids) >= self.quorum

    def can_confirm(self, actor_id: UserID | int) -> bool:
        return UserID(actor_id) in self.approver_ids

    def confirm(self, actor_id: UserID | int) -> bool:
        """Record a confirmation.

        Repeat confirmations from the same actor and confirmations from
        non-approvers do not count.

        Returns:
            bool: True if the confirmation was newly counted.
        """
        if not self.is_open:
            return False

        actor = UserID(actor_id)
        if actor not in self.approver_ids:
            logger.debug("[APPROVAL GATE] Ignoring confirmation from non-approver %s in guild %s", actor, self.guild_id)
            return False
        if actor in self.confirmed_ids:
            return False

        self.confirmed_ids.add(actor)
        logger.info(
            "[APPROVAL GATE] Guild %s: %d/%d confirmations (owner confirmed: %s)",
            self.guild_id,
            len(self.confirmed_ids),
            self.quorum,
            self.owner_id in self.confirmed_ids,
        )
        if self.is_satisfied:
            self._close(ApprovalOutcome.CONFIRMED)
        return True

    def reject(self) -> None:
        """Close the session without approval."""
        if self.is_open:
            self._close(ApprovalOutcome.REJECTED)

    def _close(self, outcome: ApprovalOutcome) -> None:
        self.state = outcome
        self._decided.set()

    async def wait(self) -> ApprovalOutcome:
        """Wait until the session is decided or the deadline passes."""
        if self.is_open:
            try:
                await asyncio.wait_for(self._decided.wait(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                if self.is_open:
                    self._close(ApprovalOutcome.TIMED_OUT)
        return self.state or ApprovalOutcome.TIMED_OUT


ApprovalPrompt = Callable[[ApprovalSession], Awaitable[None]]


async def fetch_admin_ids(guild: discord.Guild) -> Set[UserID]:
    """Return the ids of every non-bot member holding the administrator capability."""
    admin_ids: Set[UserID] = set()
    async for member in guild.fetch_members(limit=None):
        if member.bot:
            continue
        if member.guild_permissions.administrator:
            admin_ids.add(UserID(member.id))
    return admin_ids


class ApprovalGate:
    """
    Owner of the open :class:`ApprovalSession` per guild.

    Args:
        sessions: Key-value store for open sessions. A plain dict by default;
            injectable so tests (or a persistent backend) can observe it.
        timeout_seconds: Confirmation window for new sessions.
    """

    def __init__(
        self,
        sessions: MutableMapping[GuildID, ApprovalSession] | None = None,
        *,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.sessions: MutableMapping[GuildID, ApprovalSession] = sessions if sessions is not None else {}
        self.timeout_seconds = timeout_seconds

    def is_open(self, guild_id: GuildID | int) -> bool:
        return GuildID(guild_id) in self.sessions

    def get_session(self, guild_id: GuildID | int) -> Optional[ApprovalSession]:
        return self.sessions.get(GuildID(guild_id))

    def open_session(
        self,
        guild_id: GuildID | int,
        owner_id: UserID | int,
        admin_ids: AbstractSet[UserID] | Iterable[UserID | int],
    ) -> ApprovalSession:
        """Register a new session for the guild.

        Raises:
            ApprovalSessionActiveError: If a session is already open for the guild.
        """
        key = GuildID(guild_id)
        if key in self.sessions:
            raise ApprovalSessionActiveError("A reform process is already active for this server.")

        session = ApprovalSession(key, UserID(owner_id), admin_ids, timeout_seconds=self.timeout_seconds)
        self.sessions[key] = session
        logger.info(
            "[APPROVAL GATE] Opened session for guild %s (%d admins, quorum %d, owner only: %s)",
            key,
            len(session.admin_ids),
            session.quorum,
            session.owner_only,
        )
        return session

    def close_session(self, guild_id: GuildID | int) -> None:
        session = self.sessions.pop(GuildID(guild_id), None)
        if session is not None:
            session.reject()

    async def run_session(self, session: ApprovalSession, prompt: ApprovalPrompt | None = None) -> ApprovalOutcome:
        """Present the session through ``prompt`` and wait for its outcome.

        The session is removed from the gate whatever the outcome.
        """
        try:
            if prompt is not None:
                await prompt(session)
            outcome = await session.wait()
        finally:
            self.close_session(session.guild_id)
        logger.info("[APPROVAL GATE] Session for guild %s ended: %s", session.guild_id, outcome)
        return outcome

    async def request_approval(self, guild: discord.Guild, prompt: ApprovalPrompt | None = None) -> ApprovalOutcome:
        """Collect approval for a reform of ``guild``.

        Approvers are the guild owner plus every non-bot administrator. When the
        owner is the only administrator their confirmation alone suffices;
        otherwise the owner and at least half of the administrators (rounded up,
        owner included) must confirm before the deadline.

        Raises:
            ApprovalSessionActiveError: If a session is already open for the guild.
        """
        if self.is_open(guild.id):
            raise ApprovalSessionActiveError("A reform process is already active for this server.")

        admin_ids = await fetch_admin_ids(guild)
        session = self.open_session(guild.id, guild.owner_id, admin_ids)
        return await self.run_session(session, prompt)

    @asynccontextmanager
    async def hold(self, guild: discord.Guild, prompt: ApprovalPrompt | None = None) -> AsyncIterator[ApprovalSession]:
        """Collect approval, then keep the guild reserved for the body of the block.

        The confirmed session stays registered until the block exits, so a
        second request arriving while the approved reform is being handed off
        still raises :class:`ApprovalSessionActiveError`.

        Raises:
            ApprovalTimeout: If the deadline passed first.
            ApprovalRejected: If the session was closed without approval.
            ApprovalSessionActiveError: If a session is already open for the guild.
        """
        if self.is_open(guild.id):
            raise ApprovalSessionActiveError("A reform process is already active for this server.")

        admin_ids = await fetch_admin_ids(guild)
        session = self.open_session(guild.id, guild.owner_id, admin_ids)
        try:
            if prompt is not None:
                await prompt(session)
            outcome = await session.wait()
            logger.info("[APPROVAL GATE] Session for guild %s ended: %s", session.guild_id, outcome)
            if outcome is ApprovalOutcome.TIMED_OUT:
                raise ApprovalTimeout("The reform was not approved before the deadline.")
            if outcome is not ApprovalOutcome.CONFIRMED:
                raise ApprovalRejected("The reform was not approved.")
            yield session
        finally:
            self.close_session(session.guild_id)

    async def require_approval(self, guild: discord.Guild, prompt: ApprovalPrompt | None = None) -> None:
        """Like :meth:`request_approval`, but raise unless the reform was confirmed.

        Raises:
            ApprovalTimeout: If the deadline passed first.
            ApprovalRejected: If the session was closed without approval.
            ApprovalSessionActiveError: If a session is already open for the guild.
        """
        async with self.hold(guild, prompt):
            pass
