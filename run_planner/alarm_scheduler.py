"""Background thread that fires due event alarms."""

import threading
from typing import Callable, List, Optional

from run_planner import run_manager
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="alarm_scheduler")


class AlarmScheduler:
    """Poll the event store every ``poll_seconds`` and dispatch due wakes.

    Wake times are best-effort: an alarm fires on the first poll at or after
    its scheduled time.
    """

    def __init__(self, poll_seconds: float = 30.0, run_due: Optional[Callable[[], List[str]]] = None) -> None:
        if poll_seconds <= 0:
            raise ValueError("poll_seconds must be positive")
        self.poll_seconds = poll_seconds
        self._run_due = run_due
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> List[str]:
        """Run one poll; failures are logged so the loop keeps going."""
        run_due = self._run_due or run_manager.run_due_alarms
        try:
            fired = run_due()
        except Exception:
            logger.exception("Alarm poll failed")
            return []
        if fired:
            logger.debug(f"Fired {len(fired)} alarm(s): {fired}")
        return fired

    def _loop(self) -> None:
        logger.info(f"Alarm loop started (poll every {self.poll_seconds}s)")
        while not self._stop.is_set():
            self.tick()
            self._stop.wait(self.poll_seconds)
        logger.info("Alarm loop stopped")

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="alarm-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
