"""Analysis stage (Stage 03): score a transcript against a sales rubric.

Two analyzers share one contract. ``HttpAnalyzer`` forwards to the hosted
analysis endpoint; ``BedrockAnalyzer`` prompts a Bedrock model directly and
validates the JSON it returns.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from salescoach.domain.defaults import DEFAULT_PROCESS_ID, DEFAULT_SALES_PROCESS
from salescoach.domain.models import KnowledgeBase, RecordingAnalysis, SalesProcess
from salescoach.services.coach_api import AnalysisError, CoachApiClient
from salescoach.services.events import PipelineEvents
from salescoach.services.llm_client import BedrockLlmClient
from salescoach.services.persistence import CatalogRepository
from salescoach.services.prompt_builder import build_analysis_prompts
from salescoach.services.response_contract import ResponseContractError, parse_analysis

logger = logging.getLogger("salescoach.pipeline")

_MAX_JSON_RETRIES = 1  # Extra attempts when the model returns malformed JSON.


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class Analyzer(ABC):
    @abstractmethod
    async def analyze(
        self,
        transcript: str,
        *,
        process: Optional[SalesProcess],
        knowledge_base: KnowledgeBase,
    ) -> RecordingAnalysis:
        """Return the structured analysis; ``process`` is None for the default rubric."""


class HttpAnalyzer(Analyzer):
    def __init__(self, client: CoachApiClient) -> None:
        self._client = client

    async def analyze(
        self,
        transcript: str,
        *,
        process: Optional[SalesProcess],
        knowledge_base: KnowledgeBase,
    ) -> RecordingAnalysis:
        payload = await self._client.analyze_recording(
            transcript,
            process=process,
            knowledge_base=knowledge_base,
        )
        try:
            return RecordingAnalysis.model_validate(payload)
        except ValidationError as exc:
            raise AnalysisError(f"Analysis response failed validation: {exc}") from exc


class BedrockAnalyzer(Analyzer):
    def __init__(self, llm: BedrockLlmClient) -> None:
        self._llm = llm

    async def analyze(
        self,
        transcript: str,
        *,
        process: Optional[SalesProcess],
        knowledge_base: KnowledgeBase,
    ) -> RecordingAnalysis:
        prompts = build_analysis_prompts(
            transcript,
            process or DEFAULT_SALES_PROCESS,
            knowledge_base,
        )
        for attempt in range(_MAX_JSON_RETRIES + 1):
            raw_response = await self._llm.invoke(
                system_prompt=prompts.system_prompt,
                user_prompt=prompts.user_prompt,
            )
            try:
                return parse_analysis(raw_response)
            except ResponseContractError as exc:
                logger.warning(
                    "Model produced an invalid analysis attempt=%s: %s | %s",
                    attempt + 1,
                    exc,
                    _truncate(raw_response),
                )
                if attempt >= _MAX_JSON_RETRIES:
                    raise
        raise ResponseContractError("No valid analysis was produced")


class AnalysisStage:
    """Resolve rubric and company context, then delegate to the analyzer."""

    def __init__(
        self,
        analyzer: Analyzer,
        catalog: CatalogRepository,
        *,
        events: Optional[PipelineEvents] = None,
        default_process_id: str = DEFAULT_PROCESS_ID,
    ) -> None:
        self._analyzer = analyzer
        self._catalog = catalog
        self._events = events
        self._default_process_id = default_process_id

    async def run(self, transcript: str, process_type: str) -> RecordingAnalysis:
        process: Optional[SalesProcess] = None
        if process_type and process_type != self._default_process_id:
            process = await self._catalog.get_process(process_type)
            if process is None:
                logger.info("Process %s not found; scoring with the default rubric", process_type)
        knowledge_base = await self._catalog.get_knowledge_base()

        if self._events is not None:
            self._events.debug(f"Starting analysis with transcript length: {len(transcript)}")
        return await self._analyzer.analyze(
            transcript,
            process=process,
            knowledge_base=knowledge_base,
        )


__all__ = ["Analyzer", "AnalysisStage", "BedrockAnalyzer", "HttpAnalyzer"]
