from __future__ import annotations

import logging
from pathlib import Path

from chunkscribe.adapters.ffmpeg import FfmpegAdapter
from chunkscribe.contracts.config import DEFAULT_MIN_SILENCE_S, DEFAULT_NOISE_FLOOR_DB
from chunkscribe.contracts.errors import FfmpegError


logger = logging.getLogger(__name__)

_LOGGED_POINTS = 10


def detect_silence(
    source: Path,
    ffmpeg: FfmpegAdapter,
    *,
    noise_floor_db: float = DEFAULT_NOISE_FLOOR_DB,
    min_silence_s: float = DEFAULT_MIN_SILENCE_S,
) -> list[float]:
    """
    Return silence-end timestamps for source, or [] when analysis fails.
    A failed analysis only costs the split optimization; callers then fall
    back to a single chunk.
    """
    try:
        points = ffmpeg.detect_silence(source, noise_floor_db, min_silence_s)
    except (FfmpegError, OSError) as exc:
        logger.warning("Failed to detect silence in %s, will use fallback splitting: %s", source, exc)
        return []

    points = [float(p) for p in points]
    logger.info(
        "Detected %d silence points: %s",
        len(points),
        ", ".join(f"{p:.2f}s" for p in points[:_LOGGED_POINTS]),
    )
    return points


__all__ = ["detect_silence"]
