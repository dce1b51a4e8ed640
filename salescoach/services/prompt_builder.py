"""Helpers to construct system/user prompts for transcript analysis.

Given the transcript, the scoring rubric and the company knowledge base we
emit:
* A system prompt describing the coach persona and the strict JSON contract.
* A user prompt containing the rubric steps, company context and transcript.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from salescoach.domain.models import KnowledgeBase, SalesProcess

_MAX_TRANSCRIPT_CHARS = 60_000

SYSTEM_PROMPT = (
    "You are an experienced sales coach reviewing a recorded sales meeting. "
    "Score the representative against the rubric you are given and answer ONLY "
    "with a JSON object using these keys: overallScore (0-100), processSteps "
    "(list of {name, completed, quality, feedback, examples, missedOpportunities}), "
    "metrics ({talkListenRatio, questionsAsked, objections, callToActions, "
    "rapportMoments, valueStatements}), strengths, improvements, keyMoments "
    "(list of {timestamp, description, type, impact, quote} where type is one of "
    "positive, negative, neutral, turning_point), coachingPriorities, "
    "predictedOutcome ({likelihood: high|medium|low, reasoning, nextSteps}) and "
    "sentiment ({overall, overallScore, clientSentiment, repSentiment, "
    "sentimentShift, emotionalHighs, emotionalLows, empathyMoments})."
)


@dataclass(frozen=True)
class PromptBundle:
    system_prompt: str
    user_prompt: str


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"  - {item}" for item in items if item)


def _format_process(process: SalesProcess) -> str:
    lines = [f"Sales process: {process.name}"]
    for index, step in enumerate(process.steps, start=1):
        lines.append(f"{index}. {step.name}: {step.description}".rstrip(": "))
        if step.key_behaviors:
            lines.append(_bullets(step.key_behaviors))
    return "\n".join(lines)


def _format_knowledge_base(knowledge_base: KnowledgeBase) -> str:
    sections: list[str] = []
    if knowledge_base.company_info:
        sections.append(f"Company: {knowledge_base.company_info}")
    if knowledge_base.industry_context:
        sections.append(f"Industry: {knowledge_base.industry_context}")
    if knowledge_base.products:
        sections.append("Products:\n" + _bullets(knowledge_base.products))
    if knowledge_base.common_objections:
        sections.append("Common objections:\n" + _bullets(knowledge_base.common_objections))
    if knowledge_base.best_practices:
        sections.append("Best practices:\n" + _bullets(knowledge_base.best_practices))
    return "\n".join(sections)


def build_analysis_prompts(
    transcript: str,
    process: SalesProcess,
    knowledge_base: KnowledgeBase,
) -> PromptBundle:
    """Assemble the prompts for one analysis call."""

    transcript_text = transcript.strip()
    if len(transcript_text) > _MAX_TRANSCRIPT_CHARS:
        transcript_text = transcript_text[:_MAX_TRANSCRIPT_CHARS] + " [truncated]"

    parts = [_format_process(process)]
    company_context = _format_knowledge_base(knowledge_base)
    if company_context:
        parts.append(company_context)
    parts.append(f"Transcript:\n{transcript_text}")
    parts.append("Return the JSON object only.")
    return PromptBundle(system_prompt=SYSTEM_PROMPT, user_prompt="\n\n".join(parts))


__all__ = ["PromptBundle", "SYSTEM_PROMPT", "build_analysis_prompts"]
