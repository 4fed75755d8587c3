from __future__ import annotations

import logging
from typing import Any, Protocol

from chunkscribe.adapters.transcription import TranscriptionBackend
from chunkscribe.contracts.errors import ProviderResponseError, ProviderRetryExhaustedError


logger = logging.getLogger(__name__)


class _OpenAITranscriptionsAPI(Protocol):
    def create(self, **kwargs: Any) -> Any: ...


class _OpenAIAudioAPI(Protocol):
    transcriptions: _OpenAITranscriptionsAPI


class OpenAIClientLike(Protocol):
    audio: _OpenAIAudioAPI


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, str):
        return obj if name == "text" else default
    if isinstance(obj, dict):
        return obj.get(name, default)
    if hasattr(obj, name):
        return getattr(obj, name)
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        dumped = model_dump()
        if isinstance(dumped, dict):
            return dumped.get(name, default)
    return default


class OpenAITranscriptionAdapter(TranscriptionBackend):
    """OpenAI audio transcription backend with adapter-managed retries."""

    def __init__(
        self,
        client: OpenAIClientLike,
        *,
        model: str = "whisper-1",
        language: str | None = None,
        prompt: str | None = None,
        max_retries: int = 2,
    ) -> None:
        if not model:
            raise ValueError("model is required")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._client = client
        self._model = model
        self._language = language
        self._prompt = prompt
        self._max_retries = max_retries

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        last_error: Exception | None = None
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self._transcribe_once(audio, filename)
            except ProviderResponseError:
                raise
            except Exception as exc:
                last_error = exc
                logger.warning("OpenAI attempt %d/%d failed for %s: %s", attempt, attempts, filename, exc)
        message = f"OpenAI transcription failed for {filename} after {attempts} attempts"
        raise ProviderRetryExhaustedError(message) from last_error

    def _transcribe_once(self, audio: bytes, filename: str) -> str:
        request_kwargs: dict[str, Any] = {"model": self._model}
        if self._language:
            request_kwargs["language"] = self._language
        if self._prompt:
            request_kwargs["prompt"] = self._prompt

        response = self._client.audio.transcriptions.create(file=(filename, audio), **request_kwargs)

        text = _field(response, "text")
        if not isinstance(text, str):
            raise ProviderResponseError("OpenAI transcription response missing text")
        return text.strip()


__all__ = ["OpenAIClientLike", "OpenAITranscriptionAdapter"]
