from __future__ import annotations

from .cloudflare_transcription import CloudflareWhisperAdapter
from .ffmpeg import (
    FfmpegAdapter,
    SubprocessFfmpegAdapter,
    build_ffmpeg_segment_cmd,
    build_ffmpeg_silencedetect_cmd,
    parse_silence_ends,
)
from .openai_transcription import OpenAIClientLike, OpenAITranscriptionAdapter
from .transcription import TranscriptionBackend

__all__ = [
    "FfmpegAdapter",
    "SubprocessFfmpegAdapter",
    "build_ffmpeg_silencedetect_cmd",
    "build_ffmpeg_segment_cmd",
    "parse_silence_ends",
    "TranscriptionBackend",
    "CloudflareWhisperAdapter",
    "OpenAIClientLike",
    "OpenAITranscriptionAdapter",
]
