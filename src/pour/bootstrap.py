"""bootstrap.py

Startup wiring for a pour client.

setup() reads ./config_pour.json (writing a template and exiting when it
is missing), resolves the console timezone, fixes the run identifier and
starts the shipment and hardware loops.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from pour.config.pour_config import CONFIG_FILENAME, ConfigError, PourConfig, load_config, write_default_config
from pour.context import PourContext
from pour.logging.console_sink import ConsoleSink
from pour.logging.event_buffer import EventBuffer
from pour.logging.event_emitter import EventEmitter
from pour.logging.local_persister import LocalPersister, make_run_identifier
from pour.logging.log_tag import COLOR_GREEN, COLOR_PURPLE, COLOR_RED
from pour.shipping.hardware_sampler import HardwareUsage
from pour.shipping.shipment_loop import ShipmentPolicy
from pour.transport.http_transport import HttpTransport


DOCKER_DATA_DIR = "data"

EXIT_BAD_LOCATION = 1
EXIT_BAD_CONFIG = -1


def setup(
    is_docker: bool = False,
    *,
    base_dir: Path = Path("."),
    config_filename: str = CONFIG_FILENAME,
    start: bool = True,
    session: Optional[requests.Session] = None,
    console: Optional[ConsoleSink] = None,
    abort: Optional[Callable[[int], None]] = None,
    policy: ShipmentPolicy = ShipmentPolicy(),
    sample_fn: Optional[Callable[[], HardwareUsage]] = None,
) -> PourContext:
    """
    Build and start the process-wide pour context.

    ``is_docker`` moves the log directory to ``./data`` so it can be
    mounted as a volume. Exits through log_panic_kill() (SystemExit) when
    the config is missing or unreadable, or the timezone is unknown.
    """
    base_dir = Path(base_dir)
    log_path = base_dir
    if is_docker:
        log_path = base_dir / DOCKER_DATA_DIR
        log_path.mkdir(parents=True, exist_ok=True)

    # No run id yet: everything logged here stays in the local cache
    # until the run file exists.
    emitter = EventEmitter(
        buffer=EventBuffer(),
        persister=LocalPersister(str(log_path)),
        console=console,
        abort=abort,
    )

    config_path = base_dir / config_filename
    if not config_path.exists():
        try:
            write_default_config(config_path)
        except OSError as e:
            emitter.log_color(False, COLOR_RED, "Error auto-creating pour config:", e)
            raise
        emitter.log_panic_kill(
            EXIT_BAD_CONFIG,
            f"Pour-Config ({config_path}) was created, please fill out and restart the server",
        )

    try:
        config = load_config(config_path)
    except ConfigError as e:
        emitter.log_panic_kill(EXIT_BAD_CONFIG, "Couldn't read pour config:", e)

    try:
        emitter.console.set_timezone(ZoneInfo(config.timezone))
    except (ZoneInfoNotFoundError, ValueError):
        emitter.log_panic_kill(EXIT_BAD_LOCATION, "Could not read location", config.timezone)

    remote_enabled = config.remote_logs
    if not config.is_valid():
        emitter.log_color(False, COLOR_PURPLE, "LogServer values invalid, falling back to local")
        remote_enabled = False

    context = PourContext(
        config=config,
        emitter=emitter,
        transport=HttpTransport(config, session=session),
        remote_enabled=remote_enabled,
        policy=policy,
        sample_fn=sample_fn,
    )

    context.log_color(False, COLOR_PURPLE, "Log-Server configured at", config.address)
    emitter.persister.set_run_id(make_run_identifier())
    context.log_color(False, COLOR_GREEN, "Pour up and running..")

    if start:
        context.start()
    return context
