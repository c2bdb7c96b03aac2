"""Download progress reporting.

The fetcher feeds a ProgressTracker with every chunk it writes; the tracker
samples throughput about once a second (and always on the final chunk)
and hands a ProgressEvent to a handler:
- CLI: redraw a single status line on stderr
- Null: no-op
"""

from __future__ import annotations

import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")

# Seconds between two progress samples
DEFAULT_INTERVAL = 1.0


def format_bytes(num_bytes: float) -> str:
    """Format a byte count with 1024-based units.

    Examples: 0 -> "0 Bytes", 512 -> "512 Bytes", 1024 -> "1.00 KB",
    1048576 -> "1.00 MB".
    """
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    if index == 0:
        return f"{int(value)} {BYTE_UNITS[0]}"
    return f"{value:.2f} {BYTE_UNITS[index]}"


@dataclass(frozen=True)
class ProgressEvent:
    """A progress sample for one download.

    Attributes:
        downloaded: Bytes written so far.
        total: Expected size from Content-Length, None when unknown.
        rate: Bytes per second since the previous sample.
        done: True for the final sample.
    """

    downloaded: int
    total: Optional[int]
    rate: float
    done: bool = False

    @property
    def percent(self) -> Optional[float]:
        if not self.total:
            return None
        return min(100.0, self.downloaded * 100.0 / self.total)

    def describe(self) -> str:
        """Human-readable one-line summary of this sample."""
        transferred = format_bytes(self.downloaded)
        speed = f"{format_bytes(self.rate)}/s"
        if self.percent is None:
            return f"{transferred} ({speed})"
        return (
            f"{self.percent:5.1f}% {transferred} / {format_bytes(self.total or 0)}"
            f" ({speed})"
        )


class ProgressHandler(ABC):
    """Abstract base class for progress handlers."""

    @abstractmethod
    def start(self, url: str, total: Optional[int]) -> None:
        """Signal that a download has started.

        Args:
            url: URL being downloaded (after redirects).
            total: Expected size in bytes, None when unknown.
        """

    @abstractmethod
    def update(self, event: ProgressEvent) -> None:
        """Report a progress sample."""


class NullProgressHandler(ProgressHandler):
    """No-op handler, used when progress display is disabled."""

    def start(self, url: str, total: Optional[int]) -> None:
        pass

    def update(self, event: ProgressEvent) -> None:
        pass


class CLIProgressHandler(ProgressHandler):
    """Redraws a single progress line on a terminal stream."""

    def __init__(self, output: TextIO = sys.stderr, label: str = "goose") -> None:
        self._output = output
        self._label = label
        self._last_width = 0

    def start(self, url: str, total: Optional[int]) -> None:
        self._last_width = 0
        size = f" ({format_bytes(total)})" if total else ""
        self._output.write(f"Downloading {url}{size}\n")
        self._output.flush()

    def update(self, event: ProgressEvent) -> None:
        line = f"  {self._label}: {event.describe()}"
        padding = " " * max(0, self._last_width - len(line))
        self._last_width = len(line)
        self._output.write(f"\r{line}{padding}")
        if event.done:
            self._output.write("\n")
        self._output.flush()


class ProgressTracker:
    """Throttles per-chunk updates into at most one event per interval."""

    def __init__(
        self,
        handler: ProgressHandler,
        total: Optional[int] = None,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.handler = handler
        self.total = total if total and total > 0 else None
        self.interval = interval
        self._clock = clock
        self.downloaded = 0
        self._sample_time = clock()
        self._sample_bytes = 0

    def advance(self, num_bytes: int) -> None:
        """Record a written chunk, emitting a sample once the interval elapsed."""
        self.downloaded += num_bytes
        if self._clock() - self._sample_time >= self.interval:
            self._emit(done=False)

    def finish(self) -> None:
        """Emit the final sample."""
        self._emit(done=True)

    def _emit(self, done: bool) -> None:
        now = self._clock()
        elapsed = now - self._sample_time
        delta = self.downloaded - self._sample_bytes
        rate = delta / elapsed if elapsed > 0 else float(delta)
        self._sample_time = now
        self._sample_bytes = self.downloaded
        self.handler.update(
            ProgressEvent(
                downloaded=self.downloaded,
                total=self.total,
                rate=rate,
                done=done,
            )
        )
