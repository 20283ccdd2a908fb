from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pour.logging.log_tag import EMPTY_TAG, LogTag


TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """
    UTC wall-clock time in the collector's second-resolution
    ISO-8601 form, e.g. ``2026-10-19T08:30:00Z``.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class LogEvent:
    """
    Atomic record of one captured log call.

    LogEvent is shared by the local persister and the remote
    shipment path, and is never mutated after creation.
    """

    message: str
    # Human-readable text, already space-joined from the call arguments.

    timestamp: str
    # UTC time of the call, see utc_timestamp().

    tag: Optional[LogTag] = None
    # Classification label. Plain and colored logs carry none.

    file_name: str = ""
    # Full path of the source file that issued the log call.

    file_line: int = 0
    # Line within file_name.

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log": self.message,
            "time": self.timestamp,
            "tag": self.tag.to_dict() if self.tag is not None else dict(EMPTY_TAG),
            "file_name": self.file_name,
            "file_line": self.file_line,
        }
