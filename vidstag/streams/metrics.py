"""Counters describing what happened inside a running stream."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class StreamMetrics:
    """Frame statistics of one stream.

    Updated from the GStreamer streaming thread and read from the caller's
    thread, so all mutation goes through increment().

    :param frames_produced: Samples handed to the sink callback
    :param frames_delivered: Frames stored in the channel
    :param frames_dropped: Frames discarded because the channel was full
    :param capture_errors: Samples whose buffer could not be read
    :param engine_errors: Error messages popped from the bus
    :param empty_polls: Pulls that found neither a frame nor a bus message
    """
    frames_produced: int = 0
    frames_delivered: int = 0
    frames_dropped: int = 0
    capture_errors: int = 0
    engine_errors: int = 0
    empty_polls: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, name: str, amount: int = 1) -> None:
        """Atomically add to one of the counters.

        :param name: Counter name, e.g. "frames_dropped"
        :param amount: Value to add
        """
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    @property
    def drop_rate(self) -> float:
        """Fraction of produced frames that were discarded."""
        if self.frames_produced == 0:
            return 0.0
        return self.frames_dropped / self.frames_produced

    def summary(self) -> str:
        """Generate human-readable summary of metrics."""
        lines = [
            "=== Stream Metrics ===",
            f"Frames: {self.frames_delivered} delivered / {self.frames_produced} produced",
            f"Dropped: {self.frames_dropped} ({self.drop_rate:.1%})",
            f"Errors: {self.capture_errors} capture, {self.engine_errors} engine",
            f"Empty polls: {self.empty_polls}",
        ]
        return "\n".join(lines)
