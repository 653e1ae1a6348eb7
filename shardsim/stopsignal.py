"""Counter that decides when the supervisor may stop the run."""

from __future__ import annotations

import threading


class StopSignal:
    """Counts consecutive empty blocks; enough of them signal the end of the run."""

    def __init__(self, threshold: int) -> None:
        self._lock = threading.Lock()
        self._gap = 0
        self.threshold = threshold

    @property
    def gap(self) -> int:
        with self._lock:
            return self._gap

    def increment(self) -> None:
        """Record one more empty block."""
        with self._lock:
            self._gap += 1

    def reset(self) -> None:
        """Record a block that carried transactions."""
        with self._lock:
            self._gap = 0

    def gap_enough(self) -> bool:
        """True once the run of empty blocks reaches the threshold."""
        with self._lock:
            return self._gap >= self.threshold