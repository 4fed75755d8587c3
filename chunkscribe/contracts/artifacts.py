from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

Route = Literal["direct", "chunked"]


@dataclass(frozen=True, slots=True)
class AudioFile:
    path: Path
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path) -> "AudioFile":
        path = Path(path)
        return cls(path=path, size_bytes=path.stat().st_size)


@dataclass(frozen=True, slots=True)
class SplitPlan:
    """Strictly increasing cut times in seconds. Empty means one chunk."""

    times: tuple[float, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.times

    def __len__(self) -> int:
        return len(self.times)


@dataclass(frozen=True, slots=True)
class Chunk:
    index: int
    path: Path
    size_bytes: int
    valid: bool = True
    fallback: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class TranscriptionOutcome:
    index: int
    chunk_name: str
    success: bool
    text: str
    error: str | None = None


@dataclass(frozen=True, slots=True)
class TranscriptArtifact:
    text: str
    route: Route
    chunk_count: int
    failed_chunks: list[str] = field(default_factory=list)
    outcomes: list[TranscriptionOutcome] | None = None
    meta: dict[str, Any] | None = None
