from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from chunkscribe.adapters.cloudflare_transcription import CloudflareWhisperAdapter
from chunkscribe.adapters.openai_transcription import OpenAITranscriptionAdapter
from chunkscribe.cli import run_transcribe as cli
from chunkscribe.contracts.artifacts import TranscriptArtifact
from chunkscribe.contracts.config import ChunkingConfig
from chunkscribe.contracts.errors import PipelineError


def test_parse_args_defaults_match_chunking_defaults() -> None:
    args = cli.parse_args([])

    assert args.input_path == Path("input")
    assert args.output_dir == Path("output")
    assert args.provider == "cloudflare"
    assert cli.build_chunking_config(args) == ChunkingConfig()


def test_build_chunking_config_maps_cli_flags() -> None:
    args = cli.parse_args(
        [
            "--input",
            "talks",
            "--size-threshold-bytes",
            "1048576",
            "--min-chunk-bytes",
            "2048",
            "--noise-floor-db",
            "-35",
            "--min-silence",
            "0.8",
            "--max-chunk-seconds",
            "90",
            "--min-split-gap",
            "20",
            "--bitrate-kbps",
            "48",
            "--chunk-extension",
            ".mp3",
            "--max-workers",
            "4",
        ]
    )

    config = cli.build_chunking_config(args)

    assert args.input_path == Path("talks")
    assert config == ChunkingConfig(
        size_threshold_bytes=1048576,
        min_chunk_bytes=2048,
        noise_floor_db=-35.0,
        min_silence_s=0.8,
        max_chunk_s=90.0,
        min_split_gap_s=20.0,
        bitrate_kbps=48,
        chunk_extension="mp3",
        max_workers=4,
    )


@pytest.mark.parametrize(
    "flag,value",
    [
        ("--max-workers", "0"),
        ("--noise-floor-db", "3"),
        ("--max-chunk-seconds", "-1"),
        ("--max-retries", "-1"),
    ],
)
def test_parse_args_rejects_invalid_values(flag: str, value: str) -> None:
    with pytest.raises(SystemExit):
        cli.parse_args([flag, value])


def test_build_backend_cloudflare_requires_credentials() -> None:
    args = cli.parse_args(["--provider", "cloudflare"])

    with pytest.raises(cli.CredentialsError):
        cli.build_backend(args, env={})

    backend = cli.build_backend(
        args,
        env={cli.CLOUDFLARE_ACCOUNT_ID_ENV: "acct", cli.CLOUDFLARE_API_TOKEN_ENV: "tok"},
    )
    assert isinstance(backend, CloudflareWhisperAdapter)


def test_build_backend_openai_uses_injected_client() -> None:
    args = cli.parse_args(["--provider", "openai", "--model", "gpt-4o-mini-transcribe"])
    client = object()

    with pytest.raises(cli.CredentialsError):
        cli.build_backend(args, env={}, openai_client_factory=lambda: client)

    backend = cli.build_backend(args, env={cli.OPENAI_API_KEY_ENV: "sk-test"}, openai_client_factory=lambda: client)
    assert isinstance(backend, OpenAITranscriptionAdapter)


def test_postprocess_applies_requested_steps() -> None:
    args = cli.parse_args(["--split-sentences", "--collapse-repetitions"])

    text = cli.postprocess("Hi. Hi. Hi. Hi. Hi. Bye!", args)

    assert text == "Hi.\n...\nBye!"


class _StubTranscriber:
    def __init__(self, fail_on: set[str]) -> None:
        self.fail_on = fail_on

    def transcribe(self, path: Path) -> TranscriptArtifact:
        if path.name in self.fail_on:
            raise RuntimeError("backend down")
        return TranscriptArtifact(text=f"text of {path.stem}", route="direct", chunk_count=1)


def test_run_batch_continues_after_a_failed_file(tmp_path: Path) -> None:
    good = tmp_path / "a.mp3"
    bad = tmp_path / "b.mp3"
    good.write_bytes(b"a")
    bad.write_bytes(b"b")
    args = cli.parse_args(["--output-dir", str(tmp_path / "out")])

    result = cli.run_batch([good, bad], _StubTranscriber({"b.mp3"}), args)  # type: ignore[arg-type]

    assert result.failed == [bad]
    assert len(result.written) == 1
    assert result.written[0].name.startswith("a-")
    assert result.written[0].read_text(encoding="utf-8") == "text of a"


def test_main_reports_missing_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv(cli.CLOUDFLARE_ACCOUNT_ID_ENV, raising=False)
    monkeypatch.delenv(cli.CLOUDFLARE_API_TOKEN_ENV, raising=False)
    env_file = tmp_path / "empty.env"
    env_file.write_text("", encoding="utf-8")

    code = cli.main(["--input", str(tmp_path), "--env-file", str(env_file)])

    assert code == cli.EXIT_CONFIG
    assert "CLOUDFLARE_ACCOUNT_ID" in capsys.readouterr().err


def test_main_rejects_missing_explicit_env_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    missing = tmp_path / "nope.env"

    code = cli.main(["--input", str(tmp_path), "--env-file", str(missing)])

    assert code == cli.EXIT_CONFIG
    assert "env file not found" in capsys.readouterr().err


def test_credentials_error_is_user_facing() -> None:
    args = cli.parse_args(["--provider", "openai"])

    with pytest.raises(PipelineError, match="OPENAI_API_KEY"):
        cli.build_backend(args, env={})


def test_chunk_extension_flag_only_accepts_mp3_containers() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["--chunk-extension", "flac"])


def test_transcript_output_path_is_stem_plus_timestamp(tmp_path: Path) -> None:
    from chunkscribe.pipeline.io import transcript_output_path

    path = transcript_output_path(
        tmp_path,
        Path("input/interview.final.mp4"),
        now=datetime(2024, 3, 1, 12, 30, 5, 123000, tzinfo=timezone.utc),
    )

    assert path == tmp_path / "interview.final-2024-03-01T12-30-05-123000Z.txt"
