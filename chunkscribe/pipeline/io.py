from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from chunkscribe.contracts.errors import InputValidationError


AUDIO_EXTENSIONS = frozenset({".mp3", ".mp4", ".wav", ".m4a", ".flac"})


def discover_audio_files(input_path: Path, *, extensions: frozenset[str] = AUDIO_EXTENSIONS) -> list[Path]:
    """A single file is returned as-is; a directory is scanned one level deep."""
    input_path = Path(input_path)
    if input_path.is_file():
        return [input_path]
    if not input_path.is_dir():
        raise InputValidationError(f"input not found: {input_path}")
    return sorted(
        path for path in input_path.iterdir()
        if path.is_file() and path.suffix.lower() in extensions
    )


def transcript_output_path(output_dir: Path, source: Path, *, now: datetime | None = None) -> Path:
    moment = now or datetime.now(timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return Path(output_dir) / f"{Path(source).stem}-{stamp}.txt"


def write_text_file(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    _atomic_write_bytes(path, text.encode(encoding))


def _atomic_write_bytes(path: Path, payload: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(payload)
            tmp_file.flush()
            try:
                os.fsync(tmp_file.fileno())
            except OSError:
                # Best-effort durability; some environments/sandboxes may not support fsync.
                pass
        os.replace(tmp_path, path)
    finally:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass


__all__ = [
    "AUDIO_EXTENSIONS",
    "discover_audio_files",
    "transcript_output_path",
    "write_text_file",
]
