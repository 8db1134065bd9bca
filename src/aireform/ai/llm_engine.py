"""Client for the OpenAI-compatible completion endpoint used for planning and evaluation.

The endpoint is configured through ``ai_settings`` in ``app_config.yml``
(``base_url``, ``api_key``, ``model_name``) so it can point at OpenAI, a vLLM
server, LM Studio, or any other compatible backend.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam

from aireform.ai import prompt_builder
from aireform.configuration.settings import AISettings
from aireform.datatypes.reform_datatypes import ChangeSet, StructureSnapshot
from aireform.reform.change_set_parsing import parse_change_set
from aireform.util.logger import get_logger

logger = get_logger("llm_engine")


class LLMEngine:
    """
    Sends prompts to the completion endpoint and returns the completion text.

    Args:
        ai_settings: Endpoint configuration.
        client: Pre-built client (tests inject a stub).
    """

    def __init__(self, ai_settings: AISettings, client: Optional[AsyncOpenAI] = None) -> None:
        self._client = client or AsyncOpenAI(
            api_key=ai_settings.api_key,
            base_url=ai_settings.base_url,
            timeout=ai_settings.request_timeout,
        )
        self._model_name = ai_settings.model_name
        logger.info("[LLM ENGINE] Initialized with base_url=%s, model=%s", ai_settings.base_url, self._model_name)

    async def complete(self, messages: List[ChatCompletionMessageParam]) -> str:
        """Run one chat completion and return its text ("" when the model returned none)."""
        response = await self._client.chat.completions.create(model=self._model_name, messages=messages)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def plan_reform(
        self,
        snapshot: StructureSnapshot,
        *,
        context: str,
        suggestions: Sequence[str],
        locale: str,
    ) -> ChangeSet:
        """Ask the model for a change-set and validate it.

        Raises:
            PlannerResponseInvalid: If the completion is not a valid change-set.
        """
        messages = prompt_builder.build_reform_messages(snapshot, context=context, suggestions=suggestions, locale=locale)
        response_text = await self.complete(messages)
        logger.debug("[LLM ENGINE] Reform response:\n%s", response_text)
        return parse_change_set(response_text)

    async def evaluate_server(
        self,
        *,
        guild_name: str,
        context: str,
        guild_details: Dict[str, Any],
        message_history: Sequence[Dict[str, Any]],
        locale: str,
    ) -> str:
        messages = prompt_builder.build_evaluation_messages(
            guild_name=guild_name,
            context=context,
            guild_details=guild_details,
            message_history=message_history,
            locale=locale,
        )
        response_text = await self.complete(messages)
        return response_text.strip() or "No response from AI."
