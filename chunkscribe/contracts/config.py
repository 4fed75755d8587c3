from __future__ import annotations

from dataclasses import dataclass

from .errors import InputValidationError


DEFAULT_SIZE_THRESHOLD_BYTES = 5 * 1024 * 1024
DEFAULT_MIN_CHUNK_BYTES = 1024
DEFAULT_NOISE_FLOOR_DB = -30.0
DEFAULT_MIN_SILENCE_S = 0.6
DEFAULT_MAX_CHUNK_S = 120.0
DEFAULT_MIN_SPLIT_GAP_S = 30.0
DEFAULT_BITRATE_KBPS = 64
DEFAULT_CHUNK_EXTENSION = "mp3"

# chunks are always encoded with libmp3lame
CHUNK_EXTENSIONS = ("mp3",)


@dataclass(frozen=True, slots=True)
class ChunkingConfig:
    """Thresholds for routing, silence detection, splitting and dispatch.

    ``max_workers=None`` keeps every valid chunk in flight at once; set it to
    cap concurrent backend requests.
    """

    size_threshold_bytes: int = DEFAULT_SIZE_THRESHOLD_BYTES
    min_chunk_bytes: int = DEFAULT_MIN_CHUNK_BYTES
    noise_floor_db: float = DEFAULT_NOISE_FLOOR_DB
    min_silence_s: float = DEFAULT_MIN_SILENCE_S
    max_chunk_s: float = DEFAULT_MAX_CHUNK_S
    min_split_gap_s: float = DEFAULT_MIN_SPLIT_GAP_S
    bitrate_kbps: int = DEFAULT_BITRATE_KBPS
    chunk_extension: str = DEFAULT_CHUNK_EXTENSION
    max_workers: int | None = None

    def validate(self) -> "ChunkingConfig":
        for name in ("size_threshold_bytes", "min_chunk_bytes", "bitrate_kbps"):
            if getattr(self, name) <= 0:
                raise InputValidationError(f"{name} must be > 0")
        for name in ("min_silence_s", "max_chunk_s", "min_split_gap_s"):
            if getattr(self, name) <= 0:
                raise InputValidationError(f"{name} must be > 0")
        if self.noise_floor_db >= 0:
            raise InputValidationError("noise_floor_db must be < 0")
        if self.chunk_extension not in CHUNK_EXTENSIONS:
            raise InputValidationError(f"chunk_extension must be one of: {', '.join(CHUNK_EXTENSIONS)}")
        if self.max_workers is not None and self.max_workers <= 0:
            raise InputValidationError("max_workers must be > 0 when set")
        return self


__all__ = [
    "CHUNK_EXTENSIONS",
    "ChunkingConfig",
    "DEFAULT_BITRATE_KBPS",
    "DEFAULT_CHUNK_EXTENSION",
    "DEFAULT_MAX_CHUNK_S",
    "DEFAULT_MIN_CHUNK_BYTES",
    "DEFAULT_MIN_SILENCE_S",
    "DEFAULT_MIN_SPLIT_GAP_S",
    "DEFAULT_NOISE_FLOOR_DB",
    "DEFAULT_SIZE_THRESHOLD_BYTES",
]
