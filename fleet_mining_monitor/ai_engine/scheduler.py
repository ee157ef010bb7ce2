"""
Background scheduling for the optimization and self-improvement cycles.
"""

import threading
from typing import Callable, Dict, Optional

from ai_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


class PeriodicTask:
    """
    Runs a callback on a daemon thread every ``interval_seconds``.

    The first run happens one interval after start(). Exceptions raised by
    the callback are logged and the task keeps ticking.
    """

    def __init__(self, name: str, interval_seconds: float, callback: Callable[[], object]):
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> bool:
        if self.is_running():
            return True

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop_event,), daemon=True, name=self.name
        )
        self._thread.start()
        logger.info(f"Periodic task {self.name} started ({self.interval_seconds}s interval)")
        return True

    def stop(self, wait: bool = True) -> None:
        """Stop ticking; with ``wait`` an in-flight run finishes first."""
        self._stop_event.set()
        if not wait:
            return
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def _loop(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval_seconds):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Periodic task {self.name} failed: {e}", exc_info=True)


class OptimizationScheduler:
    """
    Owns the two independent periodic cycles of the engine.
    """

    def __init__(self, optimization_callback: Callable[[], object], optimization_interval: float,
                 improvement_callback: Callable[[], object], improvement_interval: float):
        self.tasks: Dict[str, PeriodicTask] = {
            "optimization": PeriodicTask("ai-optimization-cycle", optimization_interval,
                                         optimization_callback),
            "self_improvement": PeriodicTask("ai-self-improvement-cycle", improvement_interval,
                                             improvement_callback),
        }

    def start(self) -> None:
        for task in self.tasks.values():
            task.start()

    def stop(self) -> None:
        for task in self.tasks.values():
            task.stop(wait=False)
        for task in self.tasks.values():
            task.stop()

    def is_running(self) -> bool:
        return any(task.is_running() for task in self.tasks.values())
