"""Run instrumentation for the batch matcher.

Records wall-clock timing and process memory per chunk and derives
throughput and early-termination metrics at the end of a run.  Purely
observational: nothing here feeds back into matching decisions.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Optional

import psutil

from lease_match.domain.scoring import ChunkStats

logger = logging.getLogger(__name__)

# Chunk detail is listed individually up to this many chunks
_MAX_CHUNKS_LISTED = 5


@dataclass
class ChunkMetric:
    """Metrics for a single chunk of listings."""
    chunk_index: int
    listings_in_chunk: int
    duration_ms: float
    avg_ms_per_listing: float
    memory_mb: float


@dataclass
class ChunkToken:
    chunk_index: int
    listings_count: int
    start_time: float
    start_memory_mb: float


@dataclass
class PerformanceMetrics:
    """Derived metrics for a whole run."""
    total_duration_ms: float
    listings_per_second: float
    pairs_per_second: float
    scored_pairs_per_second: float
    early_termination_rate: float
    memory_mb: float
    peak_memory_mb: float
    start_memory_mb: float
    chunk_metrics: list[ChunkMetric] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in (
            "total_duration_ms",
            "listings_per_second",
            "pairs_per_second",
            "scored_pairs_per_second",
            "memory_mb",
            "peak_memory_mb",
            "start_memory_mb",
        ):
            data[key] = round(data[key], 2)
        data["early_termination_rate"] = round(self.early_termination_rate, 4)
        return data


class PerformanceTracker:
    """Tracks timing and memory for one batch run.

    Example::

        tracker = PerformanceTracker()
        token = tracker.start_chunk(0, len(chunk))
        ...  # score the chunk
        tracker.end_chunk(token)
        metrics = tracker.get_metrics(stats)
    """

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()
        self._start_time = time.perf_counter()
        self._start_memory = self._memory_mb()
        self._peak_memory = self._start_memory
        self._chunk_metrics: list[ChunkMetric] = []

    @property
    def chunk_metrics(self) -> list[ChunkMetric]:
        return list(self._chunk_metrics)

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._start_time

    def _memory_mb(self) -> float:
        return self._process.memory_info().rss / 1024 / 1024

    def _sample_memory(self) -> float:
        current = self._memory_mb()
        if current > self._peak_memory:
            self._peak_memory = current
        return current

    def start_chunk(self, chunk_index: int, listings_count: int) -> ChunkToken:
        """Start tracking a chunk."""
        return ChunkToken(
            chunk_index=chunk_index,
            listings_count=listings_count,
            start_time=time.perf_counter(),
            start_memory_mb=self._sample_memory(),
        )

    def end_chunk(self, token: ChunkToken) -> ChunkMetric:
        """Finish tracking a chunk and record its metric."""
        duration_ms = (time.perf_counter() - token.start_time) * 1000
        return self.record_chunk(token.chunk_index, token.listings_count, duration_ms)

    def record_chunk(self, chunk_index: int, listings_count: int, duration_ms: float) -> ChunkMetric:
        """Record a chunk timed elsewhere (e.g. inside a pool worker)."""
        metric = ChunkMetric(
            chunk_index=chunk_index,
            listings_in_chunk=listings_count,
            duration_ms=duration_ms,
            avg_ms_per_listing=duration_ms / listings_count if listings_count > 0 else 0.0,
            memory_mb=self._sample_memory(),
        )
        self._chunk_metrics.append(metric)
        return metric

    def get_metrics(self, stats: ChunkStats) -> PerformanceMetrics:
        """Derive run-level metrics from the recorded chunks and *stats*."""
        total_ms = self.elapsed_seconds * 1000
        listings = sum(c.listings_in_chunk for c in self._chunk_metrics)
        scored = stats.processed - stats.early_terminated
        current = self._sample_memory()

        def per_second(count: int) -> float:
            return count / total_ms * 1000 if total_ms > 0 else 0.0

        return PerformanceMetrics(
            total_duration_ms=total_ms,
            listings_per_second=per_second(listings),
            pairs_per_second=per_second(stats.processed),
            scored_pairs_per_second=per_second(scored),
            early_termination_rate=(
                stats.early_terminated / stats.processed if stats.processed > 0 else 0.0
            ),
            memory_mb=current,
            peak_memory_mb=self._peak_memory,
            start_memory_mb=self._start_memory,
            chunk_metrics=list(self._chunk_metrics),
        )

    def log_metrics(self, metrics: PerformanceMetrics, stats: ChunkStats) -> None:
        """Write a run summary to the log."""
        logger.info(
            "Performance: %.0fms total, %.2f listings/s, %.2f pairs/s, %.2f scored/s",
            metrics.total_duration_ms,
            metrics.listings_per_second,
            metrics.pairs_per_second,
            metrics.scored_pairs_per_second,
        )
        logger.info(
            "Memory: current %.2f MB, peak %.2f MB, delta %.2f MB",
            metrics.memory_mb,
            metrics.peak_memory_mb,
            metrics.peak_memory_mb - metrics.start_memory_mb,
        )
        logger.info(
            "Efficiency: early termination rate %.1f%%, %d matches",
            metrics.early_termination_rate * 100,
            stats.matched,
        )
        for line in self.format_chunk_metrics(metrics.chunk_metrics):
            logger.info("%s", line)

    @staticmethod
    def format_chunk_metrics(chunks: list[ChunkMetric]) -> list[str]:
        """One line per chunk for small runs, a summary otherwise."""
        if not chunks:
            return ["No chunks processed"]

        if len(chunks) <= _MAX_CHUNKS_LISTED:
            return [
                f"Chunk {c.chunk_index + 1}: {c.duration_ms:.0f}ms "
                f"({c.avg_ms_per_listing:.1f}ms/listing, {c.memory_mb:.1f}MB)"
                for c in chunks
            ]

        count = len(chunks)
        avg_duration = sum(c.duration_ms for c in chunks) / count
        avg_per_listing = sum(c.avg_ms_per_listing for c in chunks) / count
        avg_memory = sum(c.memory_mb for c in chunks) / count
        slowest = max(chunks, key=lambda c: c.duration_ms)
        fastest = min(chunks, key=lambda c: c.duration_ms)
        return [
            f"Total chunks: {count}",
            f"Average: {avg_duration:.1f}ms/chunk "
            f"({avg_per_listing:.1f}ms/listing, {avg_memory:.1f}MB)",
            f"Fastest: chunk {fastest.chunk_index + 1} ({fastest.duration_ms:.0f}ms)",
            f"Slowest: chunk {slowest.chunk_index + 1} ({slowest.duration_ms:.0f}ms)",
        ]
