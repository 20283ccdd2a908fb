from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pour.logging.event_buffer import EventBuffer
from pour.logging.log_tag import COLOR_RED, TAG_ERROR
from pour.shipping.failure_counter import FailureCounter
from pour.shipping.periodic_task import PeriodicTask
from pour.transport.http_transport import HttpTransport
from pour.transport.transport_exceptions import RequestFailedError, SerializationError

if TYPE_CHECKING:
    from pour.logging.event_emitter import EventEmitter


class ShipmentState(Enum):
    ENABLED = auto()
    DISABLED = auto()


@dataclass(frozen=True)
class ShipmentPolicy:
    interval: float = 5.0
    # Failures that still produce a diagnostic event.
    diagnostic_limit: int = 2
    # Failures tolerated before remote shipping is switched off for good.
    ceiling: int = 10


class ShipmentLoop(PeriodicTask):
    """
    Periodically ships the event buffer to the collector.

    State machine:
      ENABLED  -> DISABLED once the failure counter exceeds the ceiling
      DISABLED is terminal; nothing re-enables shipping
    """

    name = "pour-shipment"

    def __init__(
        self,
        *,
        buffer: EventBuffer,
        transport: HttpTransport,
        emitter: "EventEmitter",
        enabled: bool,
        policy: ShipmentPolicy = ShipmentPolicy(),
        counter: FailureCounter | None = None,
    ):
        super().__init__(interval=policy.interval)
        self.buffer = buffer
        self.transport = transport
        self.emitter = emitter
        self.policy = policy
        self.counter = counter or FailureCounter("logs")

        self._state_lock = threading.Lock()
        self.state = ShipmentState.ENABLED if enabled else ShipmentState.DISABLED

    @property
    def enabled(self) -> bool:
        return self.state == ShipmentState.ENABLED

    def tick(self) -> None:
        if not self.enabled or self.buffer.is_empty():
            return
        self.ship()

    def ship(self) -> bool:
        """
        Send the current buffer contents once.

        Returns True when the collector accepted the batch.
        """
        batch = self.buffer.snapshot()
        if not batch:
            return True

        try:
            response = self.transport.post_logs([event.to_dict() for event in batch])
        except SerializationError as e:
            self._record_failure("Error marshalling logs", e)
            return False
        except RequestFailedError as e:
            self._record_failure("Error transmitting logs", e)
            return False

        if response.accepted:
            self.buffer.discard_shipped(len(batch))
            return True

        self._record_failure("Error logging", response.body or response.status_code)
        return False

    def disable(self, reason: str) -> None:
        with self._state_lock:
            if self.state == ShipmentState.DISABLED:
                return
            self.state = ShipmentState.DISABLED
        self.emitter.log_tagged(False, TAG_ERROR, reason)

    def on_tick_error(self, exc: Exception) -> None:
        self.emitter.log_color(False, COLOR_RED, "Shipment tick failed:", repr(exc))

    def _record_failure(self, message: str, detail: Any) -> None:
        failures = self.counter.increment()
        if failures <= self.policy.diagnostic_limit:
            self.emitter.log_color(False, COLOR_RED, message, detail)

        if failures > self.policy.ceiling:
            self.disable(
                f"unsuccessfully re-tried remote logging {self.policy.ceiling} times, disabling remote.."
            )

    def snapshot(self) -> dict:
        return {
            "state": self.state.name,
            "buffered": len(self.buffer),
            "failures": self.counter.value,
        }
