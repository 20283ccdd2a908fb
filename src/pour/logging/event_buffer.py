import threading
from typing import List

from pour.logging.log_event import LogEvent


class EventBuffer:
    """
    Ordered sequence of events not yet confirmed by the remote collector.

    Responsibilities:
      - Accept events in emission order
      - Hand out snapshots for a shipment attempt
      - Drop exactly the shipped prefix once the collector accepts it
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._items: List[LogEvent] = []

    # -------------------------------------------------
    # Producer side
    # -------------------------------------------------
    def append(self, event: LogEvent) -> None:
        with self._lock:
            self._items.append(event)

    # -------------------------------------------------
    # Shipment side
    # -------------------------------------------------
    def snapshot(self) -> List[LogEvent]:
        """
        Copy of the current contents, in emission order.
        """
        with self._lock:
            return list(self._items)

    def discard_shipped(self, count: int) -> None:
        """
        Remove the first ``count`` events.

        Appends only ever go to the tail, so a snapshot taken earlier is
        always a prefix of the buffer; events appended after that snapshot
        are kept for the next shipment.
        """
        if count <= 0:
            return
        with self._lock:
            if count > len(self._items):
                raise ValueError(
                    f"Cannot discard {count} events, buffer holds {len(self._items)}"
                )
            del self._items[:count]

    def snapshot_and_clear(self) -> List[LogEvent]:
        with self._lock:
            items = self._items
            self._items = []
            return items

    # -------------------------------------------------
    # Introspection
    # -------------------------------------------------
    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
