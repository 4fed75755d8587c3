from __future__ import annotations

import logging
import re
import subprocess
from os import PathLike
from pathlib import Path
from typing import Protocol, Sequence, TypeAlias

from chunkscribe.contracts.config import CHUNK_EXTENSIONS
from chunkscribe.contracts.errors import FfmpegError


StrPath: TypeAlias = str | PathLike[str]

logger = logging.getLogger(__name__)

CHUNK_NAME_TEMPLATE = "chunk_%03d.{ext}"

_SILENCE_END_RE = re.compile(r"silence_end: ([\d.]+)")


def _path_str(value: StrPath) -> str:
    return str(Path(value))


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")


def build_ffmpeg_silencedetect_cmd(
    input_path: StrPath,
    noise_floor_db: float = -30.0,
    min_silence_s: float = 0.6,
) -> list[str]:
    """Build an analysis-only ffmpeg command that logs silence intervals."""
    _require_positive("min_silence_s", min_silence_s)

    return [
        "ffmpeg",
        "-hide_banner",
        "-nostats",
        "-i",
        _path_str(input_path),
        "-af",
        f"silencedetect=noise={noise_floor_db:g}dB:d={min_silence_s:g}",
        "-f",
        "null",
        "-",
    ]


def build_ffmpeg_segment_cmd(
    input_audio: StrPath,
    chunks_dir: StrPath,
    segment_times: Sequence[float],
    bitrate_kbps: int = 64,
    extension: str = "mp3",
) -> list[str]:
    """Build an ffmpeg command cutting at explicit times into re-encoded chunks."""
    _require_positive("bitrate_kbps", bitrate_kbps)
    if not segment_times:
        raise ValueError("segment_times must not be empty")
    if extension not in CHUNK_EXTENSIONS:
        raise ValueError(f"unsupported chunk extension for MP3 output: {extension}")
    chunk_pattern = Path(chunks_dir) / CHUNK_NAME_TEMPLATE.format(ext=extension)

    return [
        "ffmpeg",
        "-y",
        "-i",
        _path_str(input_audio),
        "-f",
        "segment",
        "-segment_times",
        ",".join(str(t) for t in segment_times),
        "-reset_timestamps",
        "1",
        "-map",
        "0:a:0",
        "-c:a",
        "libmp3lame",
        "-b:a",
        f"{bitrate_kbps}k",
        str(chunk_pattern),
    ]


def parse_silence_ends(output: str) -> list[float]:
    """Extract every ``silence_end: <seconds>`` marker in emission order."""
    points: list[float] = []
    for match in _SILENCE_END_RE.finditer(output):
        try:
            points.append(float(match.group(1)))
        except ValueError:
            # e.g. a stray "1.2.3" from interleaved log lines
            continue
    return points


class FfmpegAdapter(Protocol):
    def detect_silence(self, input_path: StrPath, noise_floor_db: float, min_silence_s: float) -> list[float]:
        """Return silence-end timestamps in seconds, in emission order."""

    def segment(
        self,
        input_audio: StrPath,
        chunks_dir: StrPath,
        segment_times: Sequence[float],
        bitrate_kbps: int,
        extension: str,
    ) -> None:
        """Cut input_audio at segment_times into chunk files inside chunks_dir."""


class SubprocessFfmpegAdapter:
    """FfmpegAdapter backed by the ffmpeg binary on PATH (or an explicit one)."""

    def __init__(self, executable: str = "ffmpeg") -> None:
        self._executable = executable

    def detect_silence(self, input_path: StrPath, noise_floor_db: float, min_silence_s: float) -> list[float]:
        cmd = build_ffmpeg_silencedetect_cmd(input_path, noise_floor_db, min_silence_s)
        completed = self._run(cmd, "ffmpeg silence detection failed")
        # silencedetect reports on stderr; keep stdout too in case of redirection
        return parse_silence_ends((completed.stdout or "") + (completed.stderr or ""))

    def segment(
        self,
        input_audio: StrPath,
        chunks_dir: StrPath,
        segment_times: Sequence[float],
        bitrate_kbps: int,
        extension: str,
    ) -> None:
        cmd = build_ffmpeg_segment_cmd(input_audio, chunks_dir, segment_times, bitrate_kbps, extension)
        self._run(cmd, "ffmpeg segmentation failed")

    def _run(self, cmd: list[str], fallback_message: str) -> subprocess.CompletedProcess[str]:
        cmd = [self._executable, *cmd[1:]]
        logger.debug("running %s", " ".join(cmd))
        try:
            # ffmpeg echoes filenames and tags as raw bytes
            completed = subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise FfmpegError(f"unable to run {self._executable}: {exc}") from exc
        if completed.returncode == 0:
            return completed
        message = completed.stderr.strip() or completed.stdout.strip() or fallback_message
        raise FfmpegError(message)


__all__ = [
    "CHUNK_NAME_TEMPLATE",
    "FfmpegAdapter",
    "SubprocessFfmpegAdapter",
    "build_ffmpeg_segment_cmd",
    "build_ffmpeg_silencedetect_cmd",
    "parse_silence_ends",
]
