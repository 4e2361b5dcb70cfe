"""
Wall-clock throughput measurement for pipeline runs.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Throughput:
    elapsed_seconds: float
    num_samples: int

    @property
    def samples_per_second(self) -> float:
        """Samples processed per second of wall time; 0.0 if no time elapsed."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.num_samples / self.elapsed_seconds


class Stopwatch:
    """
    Context manager measuring elapsed wall time with `time.perf_counter`.

        with Stopwatch() as sw:
            ...
        sw.throughput(num_samples)
    """

    def __init__(self):
        self._start: float | None = None
        self._stop: float | None = None

    def __enter__(self) -> "Stopwatch":
        self._start = time.perf_counter()
        self._stop = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stop = time.perf_counter()

    @property
    def elapsed_seconds(self) -> float:
        if self._start is None:
            return 0.0
        stop = self._stop if self._stop is not None else time.perf_counter()
        return stop - self._start

    def throughput(self, num_samples: int) -> Throughput:
        return Throughput(elapsed_seconds=self.elapsed_seconds, num_samples=int(num_samples))


def log_throughput(logger: logging.Logger, label: str, metrics: Throughput) -> None:
    """Emit the elapsed time and samples-per-second lines for a finished run."""
    extra = {
        "run": label,
        "elapsed_seconds": metrics.elapsed_seconds,
        "samples_per_second": metrics.samples_per_second,
    }
    logger.info("%s elapsed seconds : %d", label, int(metrics.elapsed_seconds), extra=extra)
    logger.info("%s samples per second : %.1f", label, metrics.samples_per_second, extra=extra)
