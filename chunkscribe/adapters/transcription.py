from __future__ import annotations

from typing import Protocol


class TranscriptionBackend(Protocol):
    """Provider adapter boundary: raw audio bytes in, transcript text out."""

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        """Return the transcript for one audio payload or raise a ProviderError."""


__all__ = ["TranscriptionBackend"]
