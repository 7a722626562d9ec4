import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from reconstructor.entities import ReconstructionLogEntry, Severity

logger = logging.getLogger("evoki_reconstructor")

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class ReconstructionLog:
    """
    Append-only, per-run log shown to the user.
    - thread-safe (the remote call runs in a worker thread)
    - every entry is mirrored to the Python logger
    - cleared at the start of each run
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._lock = threading.Lock()
        self._entries: List[ReconstructionLogEntry] = []
        self._clock = clock or datetime.now

    def add(self, message: str, severity: Severity = Severity.INFO) -> ReconstructionLogEntry:
        entry = ReconstructionLogEntry(
            timestamp=self._clock().strftime("%H:%M:%S"),
            message=message,
            severity=Severity(severity),
        )
        with self._lock:
            self._entries.append(entry)
        logger.log(_LEVELS[entry.severity], "[%s] %s", entry.severity.value, message)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> List[ReconstructionLogEntry]:
        """
        Returns a COPY of the entries, in insertion order.
        """
        with self._lock:
            return list(self._entries)

    def count(self, severity: Severity) -> int:
        with self._lock:
            return sum(1 for e in self._entries if e.severity == severity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
