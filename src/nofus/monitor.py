"""Mount monitoring loop reconciling watch invalidations with periodic probes."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional

from .actions import CommandDispatcher
from .config import MonitorConfig
from .events import AggregateState, MountStatus
from .mounts import MountProber
from .watches import WatchRegistry

logger = logging.getLogger(__name__)


@dataclass
class MonitorStats:
    """Counters emitted by the monitor for observability."""

    cycles: int = 0
    transitions: int = 0
    invalidations: int = 0


class MountMonitor:
    """Tracks the aggregate mount state and dispatches a command on every change.

    All mutable state (the watch registry, the current aggregate state and
    the counters) belongs to the instance. ``start`` performs the initial
    probe pass and dispatch, ``run_cycle`` one reconciliation, and ``run``
    loops until ``stop`` is called.
    """

    def __init__(
        self,
        config: MonitorConfig,
        prober: MountProber,
        watch_source,
        dispatcher: CommandDispatcher,
    ):
        self._config = config
        self._prober = prober
        self._watch_source = watch_source
        self._registry = WatchRegistry(watch_source)
        self._dispatcher = dispatcher
        self._stop_event = threading.Event()
        self._state: Optional[AggregateState] = None
        self._stats = MonitorStats()

    @property
    def state(self) -> Optional[AggregateState]:
        return self._state

    @property
    def registry(self) -> WatchRegistry:
        return self._registry

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    def run(self) -> None:
        """Run the monitoring loop until stopped."""

        try:
            if self._state is None:
                self.start()
            logger.debug("Starting observation loop (%s second delay)...", self._config.delay_seconds)
            while not self._stop_event.is_set():
                start_time = time.monotonic()
                self.run_cycle()
                logger.debug("Processed events in %dms", (time.monotonic() - start_time) * 1000)
                self._sleep_until_next_cycle(start_time)
        except KeyboardInterrupt:
            logger.info("Monitor interrupted by user")
        finally:
            logger.info(
                "Monitor stopped after %s cycles, %s transitions, %s invalidated watches",
                self._stats.cycles,
                self._stats.transitions,
                self._stats.invalidations,
            )

    def stop(self) -> None:
        """Signal the monitor to stop at the next opportunity."""

        self._stop_event.set()

    def start(self) -> AggregateState:
        """Probe every path, seed watches and dispatch the initial state once."""

        for path in self._config.mount_points:
            logger.info("Monitoring mount point: %s", path)
        if self._dispatcher.dry_run:
            logger.warning("== Dry run enabled, no commands will be executed. ==")

        statuses = self._probe_all()
        self._state = AggregateState.from_statuses(status.mounted for status in statuses)
        logger.info("Initial state: %s", self._state.value)
        self._dispatcher.dispatch(self._state)
        return self._state

    def run_cycle(self) -> bool:
        """Reconcile once. Returns True when the aggregate state changed."""

        if self._state is None:
            raise RuntimeError("MountMonitor.start() must run before reconciliation cycles")

        for handle in self._watch_source.read_invalidated(timeout=0):
            if self._registry.invalidate(handle):
                self._stats.invalidations += 1

        statuses = self._probe_all()
        new_state = AggregateState.from_statuses(status.mounted for status in statuses)
        self._stats.cycles += 1

        if new_state is self._state:
            return False

        unmounted = [status.path for status in statuses if not status.mounted]
        logger.debug("State changed to %s (unmounted: %s)", new_state.value, unmounted or "none")
        self._state = new_state
        self._stats.transitions += 1
        self._dispatcher.dispatch(new_state)
        return True

    def _probe_all(self) -> List[MountStatus]:
        statuses: List[MountStatus] = []
        for path in self._config.mount_points:
            mounted = self._prober.probe(path)
            if mounted and not self._registry.has_watch(path):
                self._registry.ensure_watch(path)
            statuses.append(MountStatus(path=path, mounted=mounted))
        return statuses

    def _sleep_until_next_cycle(self, started_at: float) -> None:
        elapsed = time.monotonic() - started_at
        remaining = max(self._config.delay_seconds - elapsed, 0.0)
        if remaining > 0:
            self._stop_event.wait(remaining)
