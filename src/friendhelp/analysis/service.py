"""Analysis service: the language-model side of every conversation.

Controllers only see the three operations of :class:`AnalysisService`.
Any provider failure surfaces as :class:`AnalysisServiceError`; a day
analysis that does not match the schema surfaces as
:class:`MalformedAnalysisError`.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import ValidationError

from friendhelp.analysis.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    COMPANION_FALLBACK,
    COMPANION_SYSTEM_PROMPT,
    FOLLOW_UP_FALLBACK,
    FOLLOW_UP_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_follow_up_prompt,
)
from friendhelp.config import create_model, settings
from friendhelp.errors import AnalysisServiceError, MalformedAnalysisError
from friendhelp.logging import format_log_context, logger, truncate_log_text
from friendhelp.models import ChatMessage, DayAnalysis, DayEntry

ModelFactory = Callable[..., BaseChatModel]


class AnalysisService(ABC):
    """Interface the controllers depend on."""

    @abstractmethod
    async def request_follow_up(self, last_user_message: str, history: Sequence[str]) -> str:
        """Return one follow-up question for the check-in."""

    @abstractmethod
    async def request_day_analysis(
        self,
        primary_entry: str,
        follow_up_responses: Sequence[str],
        past_entries: Sequence[DayEntry],
    ) -> DayAnalysis:
        """Return the structured analysis of the day."""

    @abstractmethod
    async def request_companion_reply(
        self, message: str, session_history: Sequence[ChatMessage]
    ) -> str:
        """Return a free-form companion reply."""


def message_text(response: Any) -> str:
    """Extract plain text from a chat model response."""
    if response is None:
        return ""

    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content.strip()

    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts).strip()

    return str(content).strip()


def parse_day_analysis(raw: str) -> DayAnalysis:
    """Validate a model reply into a DayAnalysis, failing closed.

    Raises:
        MalformedAnalysisError: If no JSON object is present or it does not
            match the schema.
    """
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise MalformedAnalysisError("Day analysis reply contained no JSON object", raw=raw)

    try:
        data = json.loads(raw[start : end + 1])
    except json.JSONDecodeError as e:
        raise MalformedAnalysisError(f"Day analysis reply is not valid JSON: {e}", raw=raw) from e

    if not isinstance(data, dict):
        raise MalformedAnalysisError("Day analysis reply is not a JSON object", raw=raw)

    try:
        return DayAnalysis.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedAnalysisError(f"Day analysis failed validation: {fields}", raw=raw) from e


class LLMAnalysisService(AnalysisService):
    """AnalysisService backed by LangChain chat models."""

    def __init__(
        self,
        model_factory: ModelFactory = create_model,
        provider: str | None = None,
    ) -> None:
        self._model_factory = model_factory
        self._provider = provider
        self._models: dict[str, BaseChatModel] = {}

    def _get_model(self, purpose: str) -> BaseChatModel:
        """Create (once) the model used for ``purpose``."""
        if purpose not in self._models:
            if purpose == "analysis":
                model = self._model_factory(
                    self._provider, model="analysis", temperature=settings.ANALYSIS_TEMPERATURE
                )
            elif purpose == "follow_up":
                model = self._model_factory(
                    self._provider, model="default", temperature=settings.FOLLOW_UP_TEMPERATURE
                )
            else:
                model = self._model_factory(
                    self._provider, model="default", temperature=settings.COMPANION_TEMPERATURE
                )
            self._models[purpose] = model
        return self._models[purpose]

    async def _invoke(self, purpose: str, messages: list[BaseMessage]) -> str:
        try:
            model = self._get_model(purpose)
            response = await model.ainvoke(messages)
        except Exception as e:
            logger.error(
                format_log_context(
                    "model_call_failed", component="analysis", purpose=purpose, error=type(e).__name__
                )
            )
            raise AnalysisServiceError(f"{purpose} request failed: {e}") from e
        return message_text(response)

    async def request_follow_up(self, last_user_message: str, history: Sequence[str]) -> str:
        text = await self._invoke(
            "follow_up",
            [
                SystemMessage(content=FOLLOW_UP_SYSTEM_PROMPT),
                HumanMessage(content=build_follow_up_prompt(last_user_message, list(history))),
            ],
        )
        if not text:
            logger.debug(format_log_context("follow_up_fallback", component="analysis"))
            return FOLLOW_UP_FALLBACK
        return text

    async def request_day_analysis(
        self,
        primary_entry: str,
        follow_up_responses: Sequence[str],
        past_entries: Sequence[DayEntry],
    ) -> DayAnalysis:
        recent = list(past_entries)[: settings.ANALYSIS_HISTORY_LIMIT]
        raw = await self._invoke(
            "analysis",
            [
                SystemMessage(content=ANALYSIS_SYSTEM_PROMPT),
                HumanMessage(
                    content=build_analysis_prompt(primary_entry, list(follow_up_responses), recent)
                ),
            ],
        )
        try:
            analysis = parse_day_analysis(raw)
        except MalformedAnalysisError as e:
            logger.warning(
                format_log_context(
                    "analysis_malformed",
                    component="analysis",
                    reason=str(e),
                    preview=truncate_log_text(raw),
                )
            )
            raise

        logger.info(
            format_log_context(
                "day_analyzed",
                component="analysis",
                score=analysis.happiness_score,
                advice=len(analysis.advice),
            )
        )
        return analysis

    async def request_companion_reply(
        self, message: str, session_history: Sequence[ChatMessage]
    ) -> str:
        messages: list[BaseMessage] = [SystemMessage(content=COMPANION_SYSTEM_PROMPT)]
        for item in session_history:
            if item.role == "assistant":
                messages.append(AIMessage(content=item.content))
            else:
                messages.append(HumanMessage(content=item.content))
        messages.append(HumanMessage(content=message))

        text = await self._invoke("companion", messages)
        return text or COMPANION_FALLBACK
