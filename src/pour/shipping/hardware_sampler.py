from __future__ import annotations

import platform
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

import psutil

from pour.logging.log_tag import COLOR_RED
from pour.shipping.failure_counter import FailureCounter
from pour.shipping.periodic_task import PeriodicTask
from pour.transport.http_transport import HttpTransport
from pour.transport.transport_exceptions import RequestFailedError, SerializationError

if TYPE_CHECKING:
    from pour.logging.event_emitter import EventEmitter


SAMPLE_INTERVAL = 30.0
CPU_WINDOW = 5.0
DIAGNOSTIC_LIMIT = 2

PROC_CPUINFO = "/proc/cpuinfo"

# /proc/cpuinfo key -> cpu_info key
_CPUINFO_FIELDS = {
    "vendor_id": "vendorId",
    "cpu family": "family",
    "model": "model",
    "stepping": "stepping",
    "physical id": "physicalId",
    "core id": "coreId",
    "cpu cores": "cores",
    "model name": "modelName",
    "cpu MHz": "mhz",
    "cache size": "cacheSize",
    "flags": "flags",
    "microcode": "microcode",
}


@dataclass
class HardwareUsage:
    memory_total: int = 0
    memory_used: int = 0
    memory_free: int = 0
    cpus: list[float] = field(default_factory=list)
    cpu_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _first_cpuinfo_block(path: str) -> dict[str, str]:
    try:
        with open(path, encoding="utf-8") as fh:
            lines = fh.read().splitlines()
    except OSError:
        return {}

    block: dict[str, str] = {}
    for line in lines:
        if not line.strip():
            if block:
                break
            continue
        key, sep, value = line.partition(":")
        if sep:
            block[key.strip()] = value.strip()
    return block


def _to_int(value: str, default: int = 0) -> int:
    try:
        return int(value.split()[0])
    except (IndexError, ValueError):
        return default


def read_cpu_info(cpuinfo_path: Optional[str] = None) -> dict[str, Any]:
    """
    Descriptor of the first CPU, keyed like the collector expects.

    Fields come from the first /proc/cpuinfo entry where that file exists.
    ``cores`` is the physical core count of that entry's package. On other
    platforms only ``modelName``, ``cores`` and ``mhz`` are filled from
    platform/psutil and the rest keep their zero values.
    """
    info: dict[str, Any] = {
        "cpu": 0,
        "vendorId": "",
        "family": "",
        "model": "",
        "stepping": 0,
        "physicalId": "",
        "coreId": "",
        "cores": psutil.cpu_count(logical=False) or 0,
        "modelName": platform.processor() or platform.machine(),
        "mhz": 0.0,
        "cacheSize": 0,
        "flags": [],
        "microcode": "",
    }

    for key, value in _first_cpuinfo_block(cpuinfo_path or PROC_CPUINFO).items():
        name = _CPUINFO_FIELDS.get(key)
        if name is None:
            continue
        if name in ("stepping", "cores", "cacheSize"):
            info[name] = _to_int(value, info[name])
        elif name == "mhz":
            try:
                info[name] = float(value)
            except ValueError:
                pass
        elif name == "flags":
            info[name] = value.split()
        else:
            info[name] = value

    if not info["mhz"]:
        try:
            freq = psutil.cpu_freq()
        except (OSError, NotImplementedError, psutil.Error):
            freq = None
        if freq:
            info["mhz"] = freq.current
    return info


def read_hardware_usage(cpu_window: float = CPU_WINDOW) -> HardwareUsage:
    """
    Sample memory and per-core CPU load.

    Blocks for ``cpu_window`` seconds while CPU utilization is measured.
    A metric that cannot be read is left at its zero value.
    """
    usage = HardwareUsage()

    try:
        mem = psutil.virtual_memory()
        usage.memory_total = mem.total
        usage.memory_used = mem.used
        usage.memory_free = mem.free
    except (OSError, psutil.Error):
        pass

    try:
        usage.cpus = list(psutil.cpu_percent(interval=cpu_window, percpu=True))
    except (OSError, psutil.Error):
        usage.cpus = []

    usage.cpu_info = read_cpu_info()
    return usage


class HardwareSampler(PeriodicTask):
    """
    Pushes a hardware usage sample to the collector every 30 seconds.

    Independent of the log shipment: own failure counter, no shared
    buffer, and it never switches itself off.
    """

    name = "pour-hardware"

    def __init__(
        self,
        *,
        transport: HttpTransport,
        emitter: "EventEmitter",
        interval: float = SAMPLE_INTERVAL,
        cpu_window: float = CPU_WINDOW,
        diagnostic_limit: int = DIAGNOSTIC_LIMIT,
        sample_fn: Optional[Callable[[], HardwareUsage]] = None,
        counter: Optional[FailureCounter] = None,
    ):
        super().__init__(interval=interval, tick_first=True)
        self.transport = transport
        self.emitter = emitter
        self.diagnostic_limit = diagnostic_limit
        self.counter = counter or FailureCounter("hardware")
        self._sample = sample_fn or (lambda: read_hardware_usage(cpu_window))

    def tick(self) -> None:
        self.send(self._sample())

    def send(self, usage: HardwareUsage) -> bool:
        try:
            response = self.transport.patch_hardware(usage.to_dict())
        except SerializationError as e:
            self._record_failure("Error marshalling hardware-info", e)
            return False
        except RequestFailedError as e:
            self._record_failure("Error transmitting hardware-info", e)
            return False

        if not response.accepted:
            self._record_failure("Error transmitting hardware-info", response.body or response.status_code)
            return False
        return True

    def on_tick_error(self, exc: Exception) -> None:
        self.emitter.log_color(False, COLOR_RED, "Hardware sampling failed:", repr(exc))

    def _record_failure(self, message: str, detail: Any) -> None:
        if self.counter.increment() <= self.diagnostic_limit:
            self.emitter.log_color(False, COLOR_RED, message, detail)
