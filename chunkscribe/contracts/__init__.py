from .artifacts import AudioFile, Chunk, Route, SplitPlan, TranscriptArtifact, TranscriptionOutcome
from .config import ChunkingConfig
from .errors import (
    ChunkingError,
    ComponentError,
    FfmpegError,
    InputValidationError,
    PipelineError,
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderRetryExhaustedError,
    TranscriptionError,
)

__all__ = [
    "AudioFile",
    "Chunk",
    "Route",
    "SplitPlan",
    "TranscriptArtifact",
    "TranscriptionOutcome",
    "ChunkingConfig",
    "PipelineError",
    "ComponentError",
    "InputValidationError",
    "FfmpegError",
    "ChunkingError",
    "TranscriptionError",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderResponseError",
    "ProviderRetryExhaustedError",
]
