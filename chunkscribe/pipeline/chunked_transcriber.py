from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from chunkscribe.adapters.ffmpeg import FfmpegAdapter
from chunkscribe.adapters.transcription import TranscriptionBackend
from chunkscribe.components.chunking import segment_audio
from chunkscribe.components.planning import plan_splits
from chunkscribe.components.silence import detect_silence
from chunkscribe.components.size_gate import route_for
from chunkscribe.components.transcription import assemble_transcript, transcribe_chunks
from chunkscribe.components.validation import validate_chunks
from chunkscribe.contracts.artifacts import AudioFile, Chunk, TranscriptArtifact
from chunkscribe.contracts.config import ChunkingConfig
from chunkscribe.contracts.errors import InputValidationError, TranscriptionError


logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "chunkscribe-"


class ChunkedTranscriber:
    """
    Transcribe files of any size against a backend with an upload limit.

    Small files go to the backend in one request. Larger files are split at
    silence boundaries inside a private scratch directory, transcribed
    concurrently and reassembled in chunk order. The scratch directory is
    removed on every exit path.
    """

    def __init__(
        self,
        backend: TranscriptionBackend,
        ffmpeg: FfmpegAdapter,
        config: ChunkingConfig | None = None,
        *,
        scratch_root: Path | None = None,
    ) -> None:
        self._backend = backend
        self._ffmpeg = ffmpeg
        self._config = (config or ChunkingConfig()).validate()
        self._scratch_root = scratch_root

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    def transcribe(self, path: Path) -> TranscriptArtifact:
        audio = AudioFile.from_path(Path(path))
        if not audio.path.is_file():
            raise InputValidationError(f"input is not a file: {audio.path}")

        if route_for(audio, self._config.size_threshold_bytes) == "direct":
            return self._transcribe_direct(audio)

        logger.info(
            "File size %d exceeds limit %d. Splitting into chunks...",
            audio.size_bytes,
            self._config.size_threshold_bytes,
        )
        return self._transcribe_chunked(audio)

    def _transcribe_direct(self, audio: AudioFile) -> TranscriptArtifact:
        try:
            text = self._backend.transcribe(audio.path.read_bytes(), filename=audio.path.name)
        except TranscriptionError:
            raise
        except Exception as exc:
            raise TranscriptionError(f"transcription failed for {audio.path.name}: {exc}") from exc
        return TranscriptArtifact(text=text.strip(), route="direct", chunk_count=1)

    def _transcribe_chunked(self, audio: AudioFile) -> TranscriptArtifact:
        cfg = self._config
        scratch_dir = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=self._scratch_root))
        logger.info("Created temp directory: %s", scratch_dir)
        try:
            logger.info("Detecting silence points for intelligent splitting...")
            points = detect_silence(
                audio.path,
                self._ffmpeg,
                noise_floor_db=cfg.noise_floor_db,
                min_silence_s=cfg.min_silence_s,
            )
            plan = plan_splits(points, max_chunk_s=cfg.max_chunk_s, min_gap_s=cfg.min_split_gap_s)
            chunk_paths = segment_audio(
                audio.path,
                plan,
                scratch_dir,
                self._ffmpeg,
                bitrate_kbps=cfg.bitrate_kbps,
                extension=cfg.chunk_extension,
            )
            if plan.is_empty:
                # verbatim copy of the source, nothing to validate
                single = chunk_paths[0]
                chunks = [Chunk(index=0, path=single, size_bytes=single.stat().st_size, fallback=True)]
            else:
                chunks = validate_chunks(
                    scratch_dir,
                    chunk_paths,
                    source=audio.path,
                    min_chunk_bytes=cfg.min_chunk_bytes,
                )
            logger.info("Split into %d chunks.", len(chunks))

            outcomes = transcribe_chunks(chunks, self._backend, max_workers=cfg.max_workers)
            failed = [outcome.chunk_name for outcome in outcomes if not outcome.success]
            return TranscriptArtifact(
                text=assemble_transcript(outcomes),
                route="chunked",
                chunk_count=len(chunks),
                failed_chunks=failed,
                outcomes=outcomes,
                meta={
                    "source_bytes": audio.size_bytes,
                    "silence_points": len(points),
                    "split_times": list(plan.times),
                    "fallback": any(chunk.fallback for chunk in chunks),
                },
            )
        except Exception:
            logger.exception("Chunked transcription failed for %s", audio.path)
            raise
        finally:
            shutil.rmtree(scratch_dir, ignore_errors=True)


__all__ = ["ChunkedTranscriber", "SCRATCH_PREFIX"]
