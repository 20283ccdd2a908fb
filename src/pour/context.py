from __future__ import annotations

from typing import Any, Callable, Optional, Union

from pour.config.pour_config import PourConfig
from pour.logging.event_buffer import EventBuffer
from pour.logging.event_emitter import EventEmitter
from pour.logging.local_persister import LocalPersister
from pour.logging.log_tag import LogTag
from pour.shipping.hardware_sampler import HardwareSampler, HardwareUsage
from pour.shipping.shipment_loop import ShipmentLoop, ShipmentPolicy
from pour.transport.http_transport import HttpTransport


class PourContext:
    """
    Process-wide handle for one pour client.

    Owns the buffers, the transport and both periodic tasks, and exposes
    the capture API. Construct once at startup (see bootstrap.setup) and
    pass it to the code that logs.
    """

    def __init__(
        self,
        *,
        config: PourConfig,
        emitter: EventEmitter,
        transport: HttpTransport,
        remote_enabled: bool,
        policy: ShipmentPolicy = ShipmentPolicy(),
        sample_fn: Optional[Callable[[], HardwareUsage]] = None,
    ):
        self.config = config
        self.emitter = emitter
        self.transport = transport

        self.shipment_loop = ShipmentLoop(
            buffer=emitter.buffer,
            transport=transport,
            emitter=emitter,
            enabled=remote_enabled,
            policy=policy,
        )
        self.hardware_sampler = HardwareSampler(
            transport=transport,
            emitter=emitter,
            sample_fn=sample_fn,
        )

    # -------------------------------------------------
    # Shared state
    # -------------------------------------------------
    @property
    def buffer(self) -> EventBuffer:
        return self.emitter.buffer

    @property
    def persister(self) -> LocalPersister:
        return self.emitter.persister

    @property
    def remote_enabled(self) -> bool:
        return self.shipment_loop.enabled

    def set_use_tls(self, use: bool) -> None:
        self.transport.set_use_tls(use)

    # -------------------------------------------------
    # Capture API
    # -------------------------------------------------
    def log(self, *args: Any) -> None:
        self.emitter.log(*args, stacklevel=2)

    def log_tagged(self, silent: bool, tag: Union[int, LogTag], *args: Any) -> None:
        self.emitter.log_tagged(silent, tag, *args, stacklevel=2)

    def log_color(self, silent: bool, color: str, *args: Any) -> None:
        self.emitter.log_color(silent, color, *args, stacklevel=2)

    def log_err(self, err: BaseException) -> None:
        self.emitter.log_err(err, stacklevel=2)

    def log_panic_kill(self, exit_code: int, *args: Any) -> None:
        self.emitter.log_panic_kill(exit_code, *args, stacklevel=2)

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    def start(self) -> None:
        """
        Start the periodic tasks.

        Hardware samples are only pushed when remote logging is enabled.
        """
        self.shipment_loop.start()
        if self.remote_enabled:
            self.hardware_sampler.start()

    def shutdown(self, timeout: float = 5.0) -> None:
        self.shipment_loop.stop()
        self.hardware_sampler.stop()
        self.emitter.flush(timeout=timeout)
        self.emitter.close()
        self.transport.close()

    def snapshot(self) -> dict:
        return {
            "run_id": self.persister.run_id,
            "shipment": self.shipment_loop.snapshot(),
            "hardware_failures": self.hardware_sampler.counter.value,
            "use_tls": self.transport.use_tls,
        }
