from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

from chunkscribe.adapters.ffmpeg import FfmpegAdapter
from chunkscribe.contracts.artifacts import SplitPlan
from chunkscribe.contracts.config import DEFAULT_BITRATE_KBPS, DEFAULT_CHUNK_EXTENSION
from chunkscribe.contracts.errors import ChunkingError, InputValidationError


logger = logging.getLogger(__name__)

_CHUNK_INDEX_RE = re.compile(r"^chunk_(\d{3,})\.[^.]+$")


def chunk_index(path: Path) -> int:
    """Index encoded in a ``chunk_NNN.ext`` filename."""
    match = _CHUNK_INDEX_RE.fullmatch(Path(path).name)
    if match is None:
        raise ChunkingError(f"unexpected chunk filename: {Path(path).name}")
    return int(match.group(1))


def fallback_chunk_path(source: Path, out_dir: Path) -> Path:
    return Path(out_dir) / f"chunk_000{Path(source).suffix}"


def copy_as_single_chunk(source: Path, out_dir: Path) -> Path:
    """Copy source verbatim as chunk 0; no re-encode."""
    target = fallback_chunk_path(source, out_dir)
    shutil.copyfile(source, target)
    return target


def _validate_source(source: Path) -> None:
    if not source.exists():
        raise InputValidationError(f"source audio not found: {source}")
    if not source.is_file():
        raise InputValidationError(f"source audio is not a file: {source}")


def _prepare_out_dir(out_dir: Path) -> Path:
    out_dir = Path(out_dir)
    if out_dir.exists() and any(out_dir.iterdir()):
        raise ChunkingError(f"chunk output directory must be empty: {out_dir}")
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def _collect_chunk_paths(out_dir: Path, extension: str) -> list[Path]:
    suffix = f".{extension}"
    # %03d widens past 999, so order by parsed index rather than by name
    chunk_paths = sorted(
        (
            path for path in out_dir.iterdir()
            if path.is_file() and path.name.startswith("chunk_") and path.suffix == suffix
        ),
        key=chunk_index,
    )
    if not chunk_paths:
        raise ChunkingError(f"ffmpeg produced no chunk files in {out_dir}")

    indices = [chunk_index(path) for path in chunk_paths]
    if indices != list(range(len(indices))):
        raise ChunkingError(f"chunk filenames must be contiguous and zero-based in {out_dir}")
    return chunk_paths


def segment_audio(
    source: Path,
    plan: SplitPlan,
    out_dir: Path,
    ffmpeg: FfmpegAdapter,
    *,
    bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
    extension: str = DEFAULT_CHUNK_EXTENSION,
) -> list[Path]:
    """
    Cut source at the planned times into ``chunk_NNN.<extension>`` files.

    An empty plan copies the source as a single chunk without calling ffmpeg.
    Encoder failures propagate: there are no chunk files to fall back on.
    """
    source = Path(source)
    _validate_source(source)
    out_dir = _prepare_out_dir(out_dir)

    if plan.is_empty:
        logger.info("No suitable split points for %s, using single chunk", source.name)
        return [copy_as_single_chunk(source, out_dir)]

    logger.info("Splitting %s at %d silence points", source.name, len(plan))
    ffmpeg.segment(source, out_dir, list(plan.times), bitrate_kbps, extension)
    return _collect_chunk_paths(out_dir, extension)


__all__ = [
    "chunk_index",
    "copy_as_single_chunk",
    "fallback_chunk_path",
    "segment_audio",
]
