"""Confirmation view attached to the reform warning message."""

from typing import Optional

import discord

from aireform.reform.approval_gate import ApprovalSession
from aireform.util.logger import get_logger

logger = get_logger("reform_ui")


class ReformConfirmationView(discord.ui.View):
    """Single "Yes" button feeding confirmations into an :class:`ApprovalSession`.

    The view lives as long as the approval window; the session, not the view,
    decides when approval is reached.
    """

    def __init__(self, session: ApprovalSession):
        super().__init__(timeout=session.timeout_seconds)
        self.session = session
        self._message: Optional[discord.Message] = None
        self.add_item(ConfirmReformButton())

    @property
    def message(self) -> Optional[discord.Message]:
        return self._message

    @message.setter
    def message(self, value: Optional[discord.Message]) -> None:
        self._message = value

    async def close(self) -> None:
        """Disable the button once the session is decided."""
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                child.disabled = True
        self.stop()
        if self._message is not None:
            try:
                await self._message.edit(view=self)
            except discord.HTTPException as exc:
                logger.debug("Could not disable reform confirmation button: %s", exc)

    async def on_timeout(self) -> None:  # pragma: no cover - relies on Discord timers
        await self.close()


class ConfirmReformButton(discord.ui.Button):
    """Button approvers press to confirm a pending reform."""

    def __init__(self):
        super().__init__(label="Yes", style=discord.ButtonStyle.success, custom_id="confirm_reform")

    async def callback(self, interaction: discord.Interaction) -> None:
        view: ReformConfirmationView = self.view  # type: ignore[assignment]
        session = view.session
        user_id = getattr(interaction.user, "id", None)

        if user_id is None or not session.can_confirm(user_id):
            await interaction.response.send_message(
                "Only the server owner and administrators can approve a reform.",
                ephemeral=True,
            )
            return

        session.confirm(user_id)
        await interaction.response.defer()
