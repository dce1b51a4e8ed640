"""HTTP client for the upload, transcription and analysis endpoints."""

from __future__ import annotations

import base64
import logging
from datetime import date
from typing import Any, Mapping, Optional

import httpx

from salescoach.config.settings import CoachApiConfig
from salescoach.domain.models import KnowledgeBase, SalesProcess

logger = logging.getLogger(__name__)


class UploadError(RuntimeError):
    """Raised when the initial upload fails (transport or rejection)."""


class TranscriptionError(RuntimeError):
    """Raised when the transcription service reports or causes a failure."""


class TranscriptionTimeoutError(TranscriptionError):
    """Raised when polling exhausts its attempt ceiling without a result."""


class AnalysisError(RuntimeError):
    """Raised when the analysis endpoint rejects or cannot process a transcript."""


def encode_audio(audio: bytes) -> str:
    """Base64-encode a payload for JSON transport."""

    return base64.b64encode(audio).decode("ascii")


def _error_message(response: httpx.Response, default: str) -> str:
    """Return the server's ``error`` field, or ``default`` when absent."""

    try:
        payload = response.json()
    except ValueError:
        return default
    if isinstance(payload, Mapping):
        message = payload.get("error")
        if message:
            return str(message)
    return default


def _json_object(response: httpx.Response, error_cls: type[RuntimeError], label: str) -> dict[str, Any]:
    """Decode a successful response body, raising ``error_cls`` unless it is a JSON object."""

    try:
        payload = response.json()
    except ValueError as exc:
        raise error_cls(f"{label} response was not valid JSON") from exc
    if not isinstance(payload, Mapping):
        raise error_cls(f"{label} response was not a JSON object")
    return dict(payload)


class CoachApiClient:
    """Thin async wrapper around the processing endpoints."""

    def __init__(
        self,
        config: CoachApiConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def upload_recording(
        self,
        audio_b64: str,
        *,
        user_id: str,
        client_name: str,
        meeting_date: date,
        process_type: str,
    ) -> dict[str, Any]:
        """Upload the payload; returns the minted recording descriptor."""

        try:
            response = await self._client.post(
                self._config.upload_path,
                json={
                    "audioData": audio_b64,
                    "userId": user_id,
                    "clientName": client_name,
                    "meetingDate": meeting_date.isoformat(),
                    "processType": process_type,
                },
            )
        except httpx.RequestError as exc:
            raise UploadError(f"Upload failed: {exc}") from exc

        if response.is_error:
            raise UploadError(_error_message(response, "Upload failed"))

        payload = _json_object(response, UploadError, "Upload")
        if not payload.get("recordingId"):
            raise UploadError("Upload response did not include a recording id")
        return payload

    async def start_transcription(self, audio_b64: str) -> str:
        """Submit audio for transcription; returns the poll token."""

        try:
            response = await self._client.post(
                self._config.start_transcription_path,
                json={"audioData": audio_b64},
            )
        except httpx.RequestError as exc:
            raise TranscriptionError(f"Failed to start transcription: {exc}") from exc

        if response.is_error:
            raise TranscriptionError(_error_message(response, "Failed to start transcription"))

        transcript_id = _json_object(response, TranscriptionError, "Start transcription").get("transcriptId")
        if not transcript_id:
            raise TranscriptionError("Transcription service did not return a transcript id")
        return str(transcript_id)

    async def check_transcription(self, transcript_id: str) -> dict[str, Any]:
        """Return the status document for a submitted transcription."""

        try:
            response = await self._client.get(
                self._config.check_transcription_path,
                params={"id": transcript_id},
            )
        except httpx.RequestError as exc:
            raise TranscriptionError(f"Failed to check transcription: {exc}") from exc

        if response.is_error:
            raise TranscriptionError(_error_message(response, "Failed to check transcription"))
        return _json_object(response, TranscriptionError, "Transcription status")

    async def analyze_recording(
        self,
        transcript: str,
        *,
        process: Optional[SalesProcess],
        knowledge_base: KnowledgeBase,
    ) -> dict[str, Any]:
        """Score a transcript against a rubric; returns the raw analysis document."""

        try:
            response = await self._client.post(
                self._config.analyze_path,
                json={
                    "transcript": transcript,
                    "processType": process.to_wire() if process else None,
                    "knowledgeBase": knowledge_base.to_wire(),
                },
            )
        except httpx.RequestError as exc:
            raise AnalysisError(str(exc)) from exc

        if response.is_error:
            raise AnalysisError(_error_message(response, "Analysis failed"))
        return _json_object(response, AnalysisError, "Analysis")


__all__ = [
    "AnalysisError",
    "CoachApiClient",
    "TranscriptionError",
    "TranscriptionTimeoutError",
    "UploadError",
    "encode_audio",
]
