"""Parsing of model-generated analysis JSON into ``RecordingAnalysis``."""

from __future__ import annotations

import json

from pydantic import ValidationError

from salescoach.domain.models import RecordingAnalysis


class ResponseContractError(RuntimeError):
    """Raised when the analysis response contract cannot be validated."""


def _clean_json_payload(payload: str) -> str:
    """Strip Markdown code fences and keep the outermost JSON object."""

    if not payload:
        return ""

    cleaned = payload.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    return cleaned


def parse_analysis(payload: str) -> RecordingAnalysis:
    """Decode and validate an analysis document produced by the model."""

    cleaned = _clean_json_payload(payload)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ResponseContractError(f"Analysis response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseContractError("Analysis response must be a JSON object")
    try:
        return RecordingAnalysis.model_validate(data)
    except ValidationError as exc:
        raise ResponseContractError(f"Analysis response failed validation: {exc}") from exc


__all__ = ["ResponseContractError", "parse_analysis"]
