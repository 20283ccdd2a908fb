from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import threading


LOGS_DIRNAME = "logs"


class LocalPersistenceError(RuntimeError):
    """
    The local log file could not be created, written or closed.

    Treated as fatal: a broken log disk leaves no durable record at all.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


@dataclass(frozen=True)
class CachedLine:
    timestamp: str
    message: str


def make_run_identifier(now: Optional[datetime] = None) -> str:
    """
    Per-run token naming the local log file.

    Colons are replaced so the name is valid on every filesystem.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return stamp.replace(":", "_")


class LocalPersister:
    """
    Mirrors every event to an append-only text file for the current run.

    Until a run identifier is set (bootstrap phase), records are held in
    the local cache. Every write drains the cache first, so a line is
    either still cached or on disk exactly once.

    Each record call opens, appends and closes the file.
    """

    def __init__(self, log_path: str = ".", run_id: Optional[str] = None):
        self._log_path = Path(log_path)
        self._run_id = run_id
        self._lock = threading.Lock()
        self._cache: List[CachedLine] = []

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def logfile_path(self) -> Optional[Path]:
        if not self._run_id:
            return None
        return self._log_path / LOGS_DIRNAME / f"{self._run_id}.log"

    def set_run_id(self, run_id: str) -> None:
        with self._lock:
            self._run_id = run_id

    def pending(self) -> int:
        """
        Number of lines waiting in the local cache.
        """
        with self._lock:
            return len(self._cache)

    def record(self, message: str, timestamp: str) -> None:
        """
        Persist one line, flushing any cached lines ahead of it.

        Raises LocalPersistenceError on any filesystem failure.
        """
        with self._lock:
            if not self._run_id:
                self._cache.append(CachedLine(timestamp=timestamp, message=message))
                return

            path = self._log_path / LOGS_DIRNAME / f"{self._run_id}.log"
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LocalPersistenceError(path.parent, f"Could not create log directory ({e})") from e

            try:
                f = open(path, "a", encoding="utf-8")
            except OSError as e:
                raise LocalPersistenceError(path, f"Could not open log file ({e})") from e

            try:
                for line in self._cache:
                    f.write(f"{line.timestamp}:{line.message}\n")
                f.write(f"{timestamp}:{message}\n")
            except OSError as e:
                f.close()
                raise LocalPersistenceError(path, f"Could not write log file ({e})") from e

            try:
                f.close()
            except OSError as e:
                raise LocalPersistenceError(path, f"Could not close log file ({e})") from e

            self._cache = []
