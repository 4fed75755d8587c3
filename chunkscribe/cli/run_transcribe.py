from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence, TypeAlias

from dotenv import load_dotenv

from chunkscribe.adapters.cloudflare_transcription import CloudflareWhisperAdapter
from chunkscribe.adapters.ffmpeg import SubprocessFfmpegAdapter
from chunkscribe.adapters.openai_transcription import OpenAITranscriptionAdapter
from chunkscribe.adapters.transcription import TranscriptionBackend
from chunkscribe.components.postprocess import collapse_repetitions, split_sentences
from chunkscribe.contracts.config import (
    CHUNK_EXTENSIONS,
    DEFAULT_BITRATE_KBPS,
    DEFAULT_CHUNK_EXTENSION,
    DEFAULT_MAX_CHUNK_S,
    DEFAULT_MIN_CHUNK_BYTES,
    DEFAULT_MIN_SILENCE_S,
    DEFAULT_MIN_SPLIT_GAP_S,
    DEFAULT_NOISE_FLOOR_DB,
    DEFAULT_SIZE_THRESHOLD_BYTES,
    ChunkingConfig,
)
from chunkscribe.contracts.errors import PipelineError
from chunkscribe.pipeline.chunked_transcriber import ChunkedTranscriber
from chunkscribe.pipeline.io import discover_audio_files, transcript_output_path, write_text_file


Argv: TypeAlias = Sequence[str]

logger = logging.getLogger("chunkscribe.cli")

CLOUDFLARE_ACCOUNT_ID_ENV = "CLOUDFLARE_ACCOUNT_ID"
CLOUDFLARE_API_TOKEN_ENV = "CLOUDFLARE_API_TOKEN"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


class CredentialsError(PipelineError):
    """Raised when the selected provider has no credentials in the environment."""


@dataclass(slots=True)
class BatchResult:
    written: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return parsed


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid float value: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return parsed


def _negative_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid float value: {value}") from exc
    if parsed >= 0:
        raise argparse.ArgumentTypeError("must be < 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chunkscribe",
        description="Transcribe audio files, splitting large ones at silences.",
    )
    parser.add_argument("--input", dest="input_path", type=Path, default=Path("input"), help="Audio file or directory of audio files.")
    parser.add_argument("--output-dir", type=Path, default=Path("output"), help="Directory for transcript .txt files.")
    parser.add_argument("--provider", choices=["cloudflare", "openai"], default="cloudflare", help="Transcription backend.")
    parser.add_argument("--model", default="whisper-1", help="Transcription model (openai provider).")
    parser.add_argument("--language", default=None, help="Transcription language code (e.g. en).")
    parser.add_argument("--env-file", type=Path, default=None, help="Load credentials from this .env file (default: ./.env if present).")
    parser.add_argument("--ffmpeg", default="ffmpeg", help="ffmpeg executable.")
    parser.add_argument("--request-timeout", type=_positive_float, default=300.0, help="Per-request timeout in seconds.")
    parser.add_argument("--max-retries", type=_nonnegative_int, default=2, help="Provider retries per request (openai provider).")

    chunking = parser.add_argument_group("chunking")
    chunking.add_argument("--size-threshold-bytes", type=_positive_int, default=DEFAULT_SIZE_THRESHOLD_BYTES, help="Files above this size are chunked.")
    chunking.add_argument("--min-chunk-bytes", type=_positive_int, default=DEFAULT_MIN_CHUNK_BYTES, help="Smaller chunks are discarded.")
    chunking.add_argument("--noise-floor-db", type=_negative_float, default=DEFAULT_NOISE_FLOOR_DB, help="Silence threshold in dB.")
    chunking.add_argument("--min-silence", type=_positive_float, default=DEFAULT_MIN_SILENCE_S, help="Minimum silence duration in seconds.")
    chunking.add_argument("--max-chunk-seconds", type=_positive_float, default=DEFAULT_MAX_CHUNK_S, help="Preferred maximum chunk duration.")
    chunking.add_argument("--min-split-gap", type=_positive_float, default=DEFAULT_MIN_SPLIT_GAP_S, help="Minimum distance between extra splits.")
    chunking.add_argument("--bitrate-kbps", type=_positive_int, default=DEFAULT_BITRATE_KBPS, help="Chunk re-encode bitrate.")
    chunking.add_argument("--chunk-extension", choices=CHUNK_EXTENSIONS, default=DEFAULT_CHUNK_EXTENSION, help="Chunk container extension (chunks are MP3-encoded).")
    chunking.add_argument("--max-workers", type=_positive_int, default=None, help="Cap on concurrent chunk requests (default: all at once).")

    post = parser.add_argument_group("post-processing")
    post.add_argument("--split-sentences", action="store_true", help="Put each sentence on its own line.")
    post.add_argument("--collapse-repetitions", action="store_true", help="Collapse long runs of repeated lines.")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Argv | None = None) -> argparse.Namespace:
    return build_parser().parse_args(list(argv) if argv is not None else None)


def build_chunking_config(args: argparse.Namespace) -> ChunkingConfig:
    return ChunkingConfig(
        size_threshold_bytes=int(args.size_threshold_bytes),
        min_chunk_bytes=int(args.min_chunk_bytes),
        noise_floor_db=float(args.noise_floor_db),
        min_silence_s=float(args.min_silence),
        max_chunk_s=float(args.max_chunk_seconds),
        min_split_gap_s=float(args.min_split_gap),
        bitrate_kbps=int(args.bitrate_kbps),
        chunk_extension=str(args.chunk_extension),
        max_workers=args.max_workers,
    ).validate()


def _load_openai_client() -> Any:
    try:
        from openai import OpenAI
    except ImportError as exc:  # pragma: no cover - depends on local runtime
        raise RuntimeError("The 'openai' package is required for --provider openai (pip install openai).") from exc
    return OpenAI()


def build_backend(
    args: argparse.Namespace,
    *,
    env: Mapping[str, str] | None = None,
    openai_client_factory: Callable[[], Any] = _load_openai_client,
) -> TranscriptionBackend:
    effective_env: Mapping[str, str] = os.environ if env is None else env

    if args.provider == "cloudflare":
        account_id = effective_env.get(CLOUDFLARE_ACCOUNT_ID_ENV)
        api_token = effective_env.get(CLOUDFLARE_API_TOKEN_ENV)
        if not account_id or not api_token:
            raise CredentialsError(f"{CLOUDFLARE_ACCOUNT_ID_ENV} and {CLOUDFLARE_API_TOKEN_ENV} must be set")
        return CloudflareWhisperAdapter(
            account_id,
            api_token,
            language=args.language,
            timeout_s=float(args.request_timeout),
        )

    if args.provider == "openai":
        if not effective_env.get(OPENAI_API_KEY_ENV):
            raise CredentialsError(f"{OPENAI_API_KEY_ENV} must be set")
        return OpenAITranscriptionAdapter(
            openai_client_factory(),
            model=args.model,
            language=args.language,
            max_retries=int(args.max_retries),
        )

    raise ValueError(f"unsupported provider: {args.provider}")


def postprocess(text: str, args: argparse.Namespace) -> str:
    if args.split_sentences:
        text = split_sentences(text)
    if args.collapse_repetitions:
        text = collapse_repetitions(text)
    return text


def run_batch(files: Sequence[Path], transcriber: ChunkedTranscriber, args: argparse.Namespace) -> BatchResult:
    result = BatchResult()
    for path in files:
        logger.info("Transcribing %s...", path.name)
        try:
            artifact = transcriber.transcribe(path)
            output_path = transcript_output_path(args.output_dir, path)
            write_text_file(output_path, postprocess(artifact.text, args))
        except Exception as exc:
            logger.error("Failed to transcribe %s: %s", path.name, exc)
            result.failed.append(path)
            continue
        if artifact.failed_chunks:
            logger.warning("%s: %d chunk(s) failed", path.name, len(artifact.failed_chunks))
        logger.info("Saved transcription to %s", output_path.name)
        result.written.append(output_path)
    return result


def load_environment(env_file: Path | None) -> None:
    """Load an explicit .env file (which must exist) or ./.env if present."""
    if env_file is None:
        load_dotenv(Path(".env"))
        return
    if not env_file.is_file():
        raise PipelineError(f"env file not found: {env_file}")
    load_dotenv(env_file)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Argv | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(bool(args.verbose))

    try:
        load_environment(args.env_file)
        config = build_chunking_config(args)
        backend = build_backend(args)
        files = discover_audio_files(args.input_path)
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    if not files:
        logger.info("No audio files found in %s.", args.input_path)
        return EXIT_OK

    logger.info("Found %d files to transcribe.", len(files))
    transcriber = ChunkedTranscriber(backend, SubprocessFfmpegAdapter(args.ffmpeg), config)
    result = run_batch(files, transcriber, args)
    return EXIT_FAILED if result.failed else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
