import threading


class FailureCounter:
    """
    Count of failed remote attempts for one transport use.

    The count only ever grows; a successful attempt does not reset it.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def exceeds(self, ceiling: int) -> bool:
        return self.value > ceiling

    def snapshot(self) -> dict:
        return {"name": self.name, "failures": self.value}
