"""Request ingestion helpers (Stage 01 of the recording pipeline)."""

from __future__ import annotations

import mimetypes

from fastapi import HTTPException, UploadFile, status

_FALLBACK_CONTENT_TYPE = "audio/webm"


def resolve_content_type(audio_file: UploadFile) -> str:
    """Accept any audio upload, guessing from the filename when the type is missing."""

    content_type = audio_file.content_type
    if (not content_type or content_type == "application/octet-stream") and audio_file.filename:
        guessed_type, _ = mimetypes.guess_type(audio_file.filename)
        content_type = guessed_type or content_type

    content_type = content_type or _FALLBACK_CONTENT_TYPE
    if content_type == "application/octet-stream":
        return _FALLBACK_CONTENT_TYPE

    if not content_type.startswith("audio/") and content_type != "video/webm":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only audio recordings are supported",
        )
    return content_type


async def read_audio_bytes(audio_file: UploadFile) -> bytes:
    """Load the upload fully into memory, rejecting empty payloads."""

    audio_bytes = await audio_file.read()
    await audio_file.close()

    if not audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded audio file is empty",
        )
    return audio_bytes


__all__ = ["resolve_content_type", "read_audio_bytes"]
