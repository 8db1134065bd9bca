"""Per-process container for the objects the cogs share."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from aireform.ai.llm_engine import LLMEngine
from aireform.configuration.app_configuration import AppConfig
from aireform.configuration.guild_config import GuildConfigStore
from aireform.configuration.settings import ReformSettings
from aireform.reform.approval_gate import ApprovalGate
from aireform.reform.reform_scheduler import ReformScheduler
from aireform.reform.reform_workflow import ReformWorkflow


@dataclass
class ReformServices:
    config_store: GuildConfigStore
    llm_engine: LLMEngine
    approval_gate: ApprovalGate
    scheduler: ReformScheduler
    workflow: ReformWorkflow
    settings: ReformSettings
    bot_owner_id: Optional[int] = None

    def is_reform_pending(self, guild_id: int) -> bool:
        """True while an approval is open or a reform job is queued or running."""
        return self.approval_gate.is_open(guild_id) or self.scheduler.is_active(guild_id)


def build_services(config: AppConfig) -> ReformServices:
    """Wire every shared component from the application configuration."""
    settings = config.reform_settings
    config_store = GuildConfigStore(
        config.database_path,
        max_suggestions=settings.max_suggestions,
        max_whitelisted_channels=settings.max_whitelisted_channels,
        max_context_length=settings.max_context_length,
    )
    llm_engine = LLMEngine(config.ai_settings)
    scheduler = ReformScheduler({}, stagger_seconds=settings.stagger_interval_seconds)
    return ReformServices(
        config_store=config_store,
        llm_engine=llm_engine,
        approval_gate=ApprovalGate({}, timeout_seconds=settings.approval_timeout_seconds),
        scheduler=scheduler,
        workflow=ReformWorkflow(config_store, llm_engine, scheduler, settings),
        settings=settings,
        bot_owner_id=config.bot_owner_id,
    )
