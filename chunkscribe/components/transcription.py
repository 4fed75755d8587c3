from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from chunkscribe.adapters.transcription import TranscriptionBackend
from chunkscribe.contracts.artifacts import Chunk, TranscriptionOutcome
from chunkscribe.contracts.errors import InputValidationError


logger = logging.getLogger(__name__)


def error_marker(chunk_name: str) -> str:
    return f"ERROR {chunk_name}"


def _validate_chunks(chunks: Sequence[Chunk]) -> None:
    if not chunks:
        raise InputValidationError("at least one chunk is required for transcription")
    indices = [chunk.index for chunk in chunks]
    if len(set(indices)) != len(indices):
        raise InputValidationError("chunk indices must be unique")


def _transcribe_one(chunk: Chunk, backend: TranscriptionBackend) -> TranscriptionOutcome:
    logger.info("Starting transcription for chunk %s", chunk.name)
    try:
        audio = chunk.path.read_bytes()
        text = backend.transcribe(audio, filename=chunk.name)
    except Exception as exc:
        logger.error("Failed to transcribe chunk %s: %s", chunk.name, exc)
        return TranscriptionOutcome(
            index=chunk.index,
            chunk_name=chunk.name,
            success=False,
            text=error_marker(chunk.name),
            error=f"{type(exc).__name__}: {exc}",
        )
    return TranscriptionOutcome(index=chunk.index, chunk_name=chunk.name, success=True, text=text)


def transcribe_chunks(
    chunks: Sequence[Chunk],
    backend: TranscriptionBackend,
    *,
    max_workers: int | None = None,
) -> list[TranscriptionOutcome]:
    """
    Transcribe every chunk concurrently and return one outcome per chunk,
    sorted by chunk index.

    With ``max_workers=None`` all chunks are in flight at once. A failing
    chunk is recorded as an unsuccessful outcome and never affects its
    siblings. Nothing is cancelled: this waits for every submission.
    """
    _validate_chunks(chunks)
    if max_workers is not None and max_workers <= 0:
        raise InputValidationError("max_workers must be > 0 when set")
    workers = len(chunks) if max_workers is None else min(max_workers, len(chunks))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunk") as executor:
        futures = [executor.submit(_transcribe_one, chunk, backend) for chunk in chunks]
        outcomes = [future.result() for future in futures]

    outcomes.sort(key=lambda outcome: outcome.index)
    for outcome in outcomes:
        if outcome.success:
            logger.info("Chunk %s: %d words", outcome.chunk_name, len(outcome.text.split()))
        else:
            logger.info("Chunk %s: ERROR", outcome.chunk_name)
    return outcomes


def assemble_transcript(outcomes: Sequence[TranscriptionOutcome]) -> str:
    """
    Join successful texts in chunk order, then append failure markers as a
    trailing block. Failures are not interleaved at their original positions.
    """
    ordered = sorted(outcomes, key=lambda outcome: outcome.index)
    full_text = "\n".join(outcome.text for outcome in ordered if outcome.success)

    failed = [outcome for outcome in ordered if not outcome.success]
    if failed:
        logger.error("Some chunks failed: %d", len(failed))
        full_text += "\n" + "\n".join(outcome.text for outcome in failed)

    return full_text.strip()


__all__ = ["assemble_transcript", "error_marker", "transcribe_chunks"]
