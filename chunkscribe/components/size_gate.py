from __future__ import annotations

from pathlib import Path

from chunkscribe.contracts.artifacts import AudioFile, Route
from chunkscribe.contracts.config import DEFAULT_SIZE_THRESHOLD_BYTES


def route_for(audio: AudioFile, threshold_bytes: int = DEFAULT_SIZE_THRESHOLD_BYTES) -> Route:
    """Files at or under the threshold go to the backend in one request."""
    return "direct" if audio.size_bytes <= threshold_bytes else "chunked"


def route_for_path(path: Path, threshold_bytes: int = DEFAULT_SIZE_THRESHOLD_BYTES) -> Route:
    # stat errors propagate: an unreadable input is fatal
    return route_for(AudioFile.from_path(path), threshold_bytes)


__all__ = ["route_for", "route_for_path"]
