from __future__ import annotations

import re


_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+")

COLLAPSED_RUN_MARKER = "..."


def split_sentences(text: str) -> str:
    """Put each sentence on its own line."""
    sentences = (piece.strip() for piece in _SENTENCE_BREAK_RE.split(text))
    return "\n".join(sentence for sentence in sentences if sentence)


def collapse_repetitions(text: str, *, max_run: int = 4) -> str:
    """
    Collapse runs of identical consecutive lines longer than ``max_run``
    into the first line followed by ``...``. Whisper-style backends loop on
    silence or music and emit the same line many times.
    """
    if max_run < 1:
        raise ValueError("max_run must be >= 1")

    output: list[str] = []
    run: list[str] = []

    def flush() -> None:
        if len(run) > max_run:
            output.extend([run[0], COLLAPSED_RUN_MARKER])
        else:
            output.extend(run)

    for line in text.split("\n"):
        if run and line != run[0]:
            flush()
            run = []
        run.append(line)
    if run:
        flush()

    return "\n".join(output)


__all__ = ["COLLAPSED_RUN_MARKER", "collapse_repetitions", "split_sentences"]
