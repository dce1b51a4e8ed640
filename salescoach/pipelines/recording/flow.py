"""High-level map of the recording pipeline.

The orchestrator in ``orchestrator.py`` owns the actual choreography; this
module documents the canonical execution order so contributors can jump to
the stage they need:

1. ``ingestion`` - the HTTP layer reads the captured payload and metadata.
2. ``upload`` - the payload goes to the upload endpoint (or the offline queue).
3. ``transcription`` - submit to speech-to-text and poll for the result.
4. ``analysis`` - score the transcript against the selected sales process.
5. ``persistence`` - every transition is cached locally, then synced remotely.
6. ``replay`` - queued captures are re-uploaded when connectivity returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the recording pipeline."""

    order: int
    name: str
    module: str
    summary: str


class RecordingPipeline:
    """Utility wrapper documenting the `/recordings` processing flow."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Ingestion",
            "salescoach.pipelines.recording.ingestion",
            "Check the content type and read the multipart payload into memory.",
        ),
        PipelineStage(
            2,
            "Upload",
            "salescoach.pipelines.recording.orchestrator",
            "Upload the payload while online, otherwise stage it in the offline queue.",
        ),
        PipelineStage(
            3,
            "Transcription",
            "salescoach.pipelines.recording.transcription",
            "Submit the audio, then poll every interval until completed, failed or timed out.",
        ),
        PipelineStage(
            4,
            "Analysis",
            "salescoach.pipelines.recording.analysis",
            "Resolve the rubric and knowledge base and call the configured analyzer.",
        ),
        PipelineStage(
            5,
            "Persistence",
            "salescoach.services.persistence",
            "Write each transition to the local cache, then best-effort to the remote store.",
        ),
        PipelineStage(
            6,
            "Replay",
            "salescoach.pipelines.recording.drainer",
            "Re-upload queued captures in FIFO order on reconnect, up to the retry ceiling.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


__all__ = ["PipelineStage", "RecordingPipeline"]
