from __future__ import annotations


class PipelineError(Exception):
    """Raised by the pipeline entrypoint for user-facing failures."""


class ComponentError(Exception):
    """Base exception for component-level failures."""


class InputValidationError(ComponentError):
    """Raised when an input path or config is invalid."""


class FfmpegError(ComponentError):
    """Raised when ffmpeg invocations fail."""


class ChunkingError(ComponentError):
    """Raised when segmentation produces unusable outputs."""


class TranscriptionError(ComponentError):
    """Raised when transcription provider calls fail."""


class ProviderError(TranscriptionError):
    """Raised for provider/API failures, including transport errors."""


class ProviderResponseError(ProviderError):
    """Raised when a provider returns an unexpected response shape."""


class ProviderRetryExhaustedError(ProviderError):
    """Raised when adapter-managed provider retries are exhausted."""


class ProviderHTTPError(ProviderError):
    """Raised when a provider answers with a non-success HTTP status."""

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"HTTP {status_code} {reason} - {body}")
