"""Recording processing pipeline package.

Modules are organised by the order in which a capture moves through them:

1. `ingestion` - validate and read the captured payload.
2. `orchestrator` - submit, upload or queue, and drive the stage chain.
3. `transcription` - submit-then-poll speech-to-text contract.
4. `analysis` - rubric/knowledge-base resolution and scoring.
5. `drainer` - replay of captures queued while offline.
6. `flow` - human-readable description of the end-to-end stages.
"""

from .analysis import AnalysisStage, Analyzer, BedrockAnalyzer, HttpAnalyzer
from .drainer import DEFAULT_MAX_ATTEMPTS, DrainReport, OfflineQueueDrainer
from .flow import PipelineStage, RecordingPipeline
from .ingestion import read_audio_bytes, resolve_content_type
from .orchestrator import RecordingOrchestrator, placeholder_for
from .transcription import timeout_message, transcribe_audio

__all__ = [
    "AnalysisStage",
    "Analyzer",
    "BedrockAnalyzer",
    "DEFAULT_MAX_ATTEMPTS",
    "DrainReport",
    "HttpAnalyzer",
    "OfflineQueueDrainer",
    "PipelineStage",
    "RecordingOrchestrator",
    "RecordingPipeline",
    "placeholder_for",
    "read_audio_bytes",
    "resolve_content_type",
    "timeout_message",
    "transcribe_audio",
]
