from __future__ import annotations

from pathlib import Path
import tempfile
import threading
import time
import unittest

from chunkscribe.components.transcription import assemble_transcript, error_marker, transcribe_chunks
from chunkscribe.contracts.artifacts import Chunk, TranscriptionOutcome
from chunkscribe.contracts.errors import InputValidationError, ProviderHTTPError


class _MappingBackend:
    """Returns canned text per filename; raises for names listed in failures."""

    def __init__(self, texts: dict[str, str], failures: set[str] | None = None, *, delays: dict[str, float] | None = None) -> None:
        self.texts = texts
        self.failures = failures or set()
        self.delays = delays or {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        with self._lock:
            self.calls.append(filename)
        time.sleep(self.delays.get(filename, 0.0))
        if filename in self.failures:
            raise ProviderHTTPError(500, "Internal Server Error", "upstream timeout")
        return self.texts[filename]


class _ConcurrencyProbe:
    def __init__(self, hold_s: float = 0.05) -> None:
        self.hold_s = hold_s
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.hold_s)
        with self._lock:
            self.active -= 1
        return filename


class _BarrierBackend:
    def __init__(self, parties: int) -> None:
        self.barrier = threading.Barrier(parties, timeout=5)

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        self.barrier.wait()
        return filename


class TranscribeChunksTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _chunks(self, count: int) -> list[Chunk]:
        chunks = []
        for idx in range(count):
            path = self.root / f"chunk_{idx:03d}.mp3"
            path.write_bytes(b"\xff\xfb" * 600)
            chunks.append(Chunk(index=idx, path=path, size_bytes=1200))
        return chunks

    def test_middle_failure_is_appended_after_successes(self) -> None:
        backend = _MappingBackend(
            {"chunk_000.mp3": "A", "chunk_002.mp3": "C"},
            failures={"chunk_001.mp3"},
        )

        outcomes = transcribe_chunks(self._chunks(3), backend)

        self.assertEqual([o.index for o in outcomes], [0, 1, 2])
        self.assertEqual([o.success for o in outcomes], [True, False, True])
        self.assertEqual(outcomes[1].text, "ERROR chunk_001.mp3")
        self.assertIn("ProviderHTTPError", outcomes[1].error or "")
        self.assertEqual(assemble_transcript(outcomes), "A\nC\nERROR chunk_001.mp3")

    def test_output_order_ignores_completion_order(self) -> None:
        backend = _MappingBackend(
            {"chunk_000.mp3": "first", "chunk_001.mp3": "second", "chunk_002.mp3": "third"},
            delays={"chunk_000.mp3": 0.15, "chunk_001.mp3": 0.05},
        )

        outcomes = transcribe_chunks(self._chunks(3), backend)

        self.assertEqual(assemble_transcript(outcomes), "first\nsecond\nthird")

    def test_every_chunk_yields_exactly_one_outcome(self) -> None:
        chunks = self._chunks(6)
        backend = _MappingBackend(
            {c.name: f"text {c.index}" for c in chunks},
            failures={"chunk_000.mp3", "chunk_004.mp3"},
        )

        outcomes = transcribe_chunks(chunks, backend)

        self.assertEqual({o.index for o in outcomes}, {c.index for c in chunks})
        self.assertEqual(sorted(backend.calls), [c.name for c in chunks])

    def test_all_chunks_in_flight_by_default(self) -> None:
        outcomes = transcribe_chunks(self._chunks(4), _BarrierBackend(4))

        self.assertTrue(all(o.success for o in outcomes))

    def test_max_workers_caps_in_flight_requests(self) -> None:
        probe = _ConcurrencyProbe()

        outcomes = transcribe_chunks(self._chunks(5), probe, max_workers=2)

        self.assertLessEqual(probe.peak, 2)
        self.assertEqual([o.text for o in outcomes], [f"chunk_{i:03d}.mp3" for i in range(5)])

    def test_unreadable_chunk_is_a_per_chunk_failure(self) -> None:
        chunks = self._chunks(2)
        chunks[0].path.unlink()
        backend = _MappingBackend({"chunk_001.mp3": "still here"})

        outcomes = transcribe_chunks(chunks, backend)

        self.assertEqual(assemble_transcript(outcomes), "still here\nERROR chunk_000.mp3")

    def test_sparse_indices_after_validation(self) -> None:
        chunks = [c for c in self._chunks(3) if c.index != 1]
        backend = _MappingBackend({"chunk_000.mp3": "zero", "chunk_002.mp3": "two"})

        outcomes = transcribe_chunks(chunks, backend)

        self.assertEqual([o.index for o in outcomes], [0, 2])

    def test_rejects_empty_chunk_list(self) -> None:
        with self.assertRaises(InputValidationError):
            transcribe_chunks([], _MappingBackend({}))

    def test_rejects_non_positive_worker_cap(self) -> None:
        with self.assertRaises(InputValidationError):
            transcribe_chunks(self._chunks(1), _MappingBackend({"chunk_000.mp3": "x"}), max_workers=0)


class AssembleTranscriptTests(unittest.TestCase):
    def test_trims_and_orders_by_index(self) -> None:
        outcomes = [
            TranscriptionOutcome(index=2, chunk_name="chunk_002.mp3", success=True, text="end. "),
            TranscriptionOutcome(index=0, chunk_name="chunk_000.mp3", success=True, text="  start"),
            TranscriptionOutcome(index=1, chunk_name="chunk_001.mp3", success=True, text="middle"),
        ]

        self.assertEqual(assemble_transcript(outcomes), "start\nmiddle\nend.")

    def test_multiple_failures_keep_index_order_in_trailing_block(self) -> None:
        outcomes = [
            TranscriptionOutcome(index=3, chunk_name="chunk_003.mp3", success=False, text=error_marker("chunk_003.mp3")),
            TranscriptionOutcome(index=0, chunk_name="chunk_000.mp3", success=False, text=error_marker("chunk_000.mp3")),
            TranscriptionOutcome(index=1, chunk_name="chunk_001.mp3", success=True, text="B"),
        ]

        self.assertEqual(assemble_transcript(outcomes), "B\nERROR chunk_000.mp3\nERROR chunk_003.mp3")

    def test_all_failed(self) -> None:
        outcomes = [
            TranscriptionOutcome(index=0, chunk_name="chunk_000.mp3", success=False, text=error_marker("chunk_000.mp3")),
        ]

        self.assertEqual(assemble_transcript(outcomes), "ERROR chunk_000.mp3")


if __name__ == "__main__":
    unittest.main()
