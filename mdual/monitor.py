"""CPU time and memory measurements, and a background memory sampler."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

_MEGABYTE = 1024.0 * 1024.0
_PROC_STATUS = Path("/proc/self/status")


def cpu_time_ns() -> int:
    """CPU time consumed by the calling thread, in nanoseconds."""
    return time.thread_time_ns()


def peak_memory_bytes() -> int:
    """Peak resident set size of the process, as reported by ``getrusage``."""
    import resource

    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss * 1024


def current_memory_usage_mb() -> float:
    """Memory used by the process in megabytes, or 0.0 when it cannot be read.

    On macOS this is the peak resident size; elsewhere it is the virtual
    size reported in ``/proc/self/status``.
    """
    if sys.platform == "darwin":
        import resource

        return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / _MEGABYTE
    try:
        with open(_PROC_STATUS, encoding="ascii", errors="replace") as status:
            for line in status:
                if line.startswith("VmSize"):
                    fields = line.split()
                    return int(fields[1]) / 1024.0
    except (OSError, IndexError, ValueError):
        pass
    return 0.0


class MemoryThread:
    """Samples memory use periodically and remembers the largest sample."""

    def __init__(
        self,
        sampler: Callable[[], float] = current_memory_usage_mb,
        interval: float = 0.1,
    ) -> None:
        self.sampler = sampler
        self.interval = interval
        self._lock = threading.Lock()
        self._max_memory = 0.0
        self._current_memory = 0.0
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether sampling is active."""
        return not self._stop_event.is_set()

    def start(self) -> None:
        """Begin sampling on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            if not self._stop_event.is_set():
                return
            self._thread.join()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask the sampling loop to finish."""
        self._stop_event.set()

    def run(self) -> None:
        """Sample until :meth:`stop` is called."""
        stop_event = self._stop_event
        while not stop_event.is_set():
            self.update_memory()
            stop_event.wait(self.interval)

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background thread to end."""
        if self._thread is not None:
            self._thread.join(timeout)

    def reset_max_memory(self) -> None:
        """Forget the largest sample seen so far."""
        with self._lock:
            self._max_memory = 0.0

    def update_memory(self) -> None:
        """Take one sample now."""
        used = self.sampler()
        with self._lock:
            self._current_memory = used
            if used > self._max_memory:
                self._max_memory = used

    def max_memory(self) -> float:
        """Largest sample since the last reset, in megabytes."""
        with self._lock:
            return self._max_memory

    def current_snapshot(self) -> float:
        """Most recent sample, in megabytes."""
        with self._lock:
            return self._current_memory