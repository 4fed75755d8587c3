from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from chunkscribe.components.chunking import chunk_index, copy_as_single_chunk
from chunkscribe.contracts.artifacts import Chunk
from chunkscribe.contracts.config import DEFAULT_MIN_CHUNK_BYTES


logger = logging.getLogger(__name__)


def validate_chunks(
    chunk_dir: Path,
    chunk_names: Sequence[str | Path],
    *,
    source: Path,
    min_chunk_bytes: int = DEFAULT_MIN_CHUNK_BYTES,
) -> list[Chunk]:
    """
    Keep chunk files of at least ``min_chunk_bytes`` and delete the rest.

    Boundary artifacts from the segment muxer can leave empty or truncated
    files. A file that cannot be inspected is dropped, not fatal. If nothing
    survives, the original source is copied in as a single fallback chunk.
    """
    chunk_dir = Path(chunk_dir)
    valid: list[Chunk] = []
    for name in chunk_names:
        path = chunk_dir / Path(name).name
        try:
            size = path.stat().st_size
            index = chunk_index(path)
            if size < min_chunk_bytes:
                logger.warning(
                    "Skipping invalid chunk %s (size: %d bytes, minimum: %d bytes)",
                    path.name,
                    size,
                    min_chunk_bytes,
                )
                path.unlink()
                continue
        except Exception as exc:
            logger.warning("Failed to validate chunk %s: %s", path.name, exc)
            continue
        valid.append(Chunk(index=index, path=path, size_bytes=size))

    if not valid:
        logger.warning("All chunks were invalid after splitting. Using original file as single chunk.")
        fallback = copy_as_single_chunk(source, chunk_dir)
        return [Chunk(index=0, path=fallback, size_bytes=fallback.stat().st_size, fallback=True)]

    valid.sort(key=lambda chunk: chunk.index)
    logger.info("Validated %d of %d chunks", len(valid), len(chunk_names))
    return valid


__all__ = ["validate_chunks"]
