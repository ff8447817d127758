"""
Polling monitor driving observers from a background thread.

The monitor calls ``check_and_notify`` on each registered observer, one after
the other, then sleeps for its interval. Sleeping waits on an event so that
``stop`` interrupts it immediately.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from treewatch.config.settings import WatcherConfig, get_config
from treewatch.models.exceptions import MonitorAlreadyRunningError, MonitorNotRunningError, ShutdownError
from treewatch.monitoring.observer import FileAlterationObserver

logger = logging.getLogger(__name__)


class TaskHandle(Protocol):
    """Handle on a running background task, as returned by a task spawner."""

    def join(self, timeout: float | None = None) -> None: ...

    def is_alive(self) -> bool: ...


TaskSpawner = Callable[[Callable[[], None]], TaskHandle]


def thread_spawner(daemon: bool = True, name: str = "treewatch-monitor") -> TaskSpawner:
    """
    Build the default task spawner, running each task in a new thread.

    Args:
        daemon: Whether the thread must not keep the interpreter alive
        name: Thread name

    Returns:
        A spawner starting the task and returning its thread
    """

    def spawn(target: Callable[[], None]) -> threading.Thread:
        thread = threading.Thread(target=target, name=name, daemon=daemon)
        thread.start()
        return thread

    return spawn


class FileAlterationMonitor:
    """
    Runs registered observers at a fixed interval in a background task.

    A monitor is either stopped or running; starting a running monitor or
    stopping a stopped one raises a LifecycleError instead of doing nothing.
    """

    def __init__(
        self,
        interval: float | None = None,
        *observers: FileAlterationObserver | None,
        task_spawner: TaskSpawner | None = None,
        config: WatcherConfig | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            interval: Seconds between two ticks (configured default if not provided)
            observers: Initial observers; None values are ignored
            task_spawner: Starts the loop and returns a joinable handle (a thread by default)
            config: Configuration (global configuration if not provided)
        """
        self.config = config or get_config()
        self._interval = float(interval if interval is not None else self.config.poll_interval_seconds)
        if self._interval <= 0:
            raise ValueError(f"Interval must be positive, got {self._interval}")
        self._task_spawner = task_spawner or thread_spawner(daemon=self.config.daemon_threads)

        self._observers: tuple[FileAlterationObserver, ...] = ()
        self._observers_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()

        self._running = False
        self._stop_event = threading.Event()
        self._task: TaskHandle | None = None
        self._ticks = 0
        self._ticks_lock = threading.Lock()

        for observer in observers:
            self.add_observer(observer)

    @property
    def interval(self) -> float:
        """Seconds between two ticks."""
        return self._interval

    @property
    def observers(self) -> tuple[FileAlterationObserver, ...]:
        """The registered observers in registration order."""
        return self._observers

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def ticks(self) -> int:
        """Number of completed ticks since construction."""
        with self._ticks_lock:
            return self._ticks

    def add_observer(self, observer: FileAlterationObserver | None) -> None:
        """Register an observer, picked up from the next tick on. None is ignored."""
        if observer is None:
            return
        with self._observers_lock:
            self._observers = (*self._observers, observer)

    def remove_observer(self, observer: FileAlterationObserver | None) -> None:
        """Unregister every registration of an observer. None is ignored."""
        if observer is None:
            return
        with self._observers_lock:
            self._observers = tuple(registered for registered in self._observers if registered is not observer)

    def start(self) -> None:
        """
        Initialize every observer and start the background loop.

        Raises:
            MonitorAlreadyRunningError: If the monitor is already running
            InitializationError: If an observer cannot be initialized; the loop is not started
        """
        with self._lifecycle_lock:
            if self._running:
                raise MonitorAlreadyRunningError()

            for observer in self._observers:
                observer.initialize()

            stop_event = threading.Event()
            self._stop_event = stop_event
            self._running = True
            try:
                self._task = self._task_spawner(lambda: self._run(stop_event))
            except Exception:
                self._running = False
                raise

            logger.info("Monitor started with %d observers (interval %.3fs)", len(self._observers), self._interval)

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the background loop and destroy the observers.

        Args:
            timeout: Seconds to wait for the loop to exit; 0 waits indefinitely,
                None uses the configured stop timeout (the interval by default)

        Raises:
            MonitorNotRunningError: If the monitor is not running
            ShutdownError: If observers failed to be destroyed
        """
        with self._lifecycle_lock:
            if not self._running:
                raise MonitorNotRunningError()

            self._running = False
            self._stop_event.set()
            task, self._task = self._task, None
            observers = self._observers

        if timeout is None:
            timeout = self.config.resolve_stop_timeout(self._interval)
        if task is not None and getattr(task, "ident", None) != threading.get_ident():
            task.join(None if timeout == 0 else timeout)
            if task.is_alive():
                logger.warning("Monitor loop did not exit within %.3fs, leaving it to finish", timeout)

        failures = []
        for observer in observers:
            try:
                observer.destroy()
            except Exception as e:
                logger.error("Failed to destroy %r: %s", observer, e)
                failures.append(e)

        logger.info("Monitor stopped after %d ticks", self.ticks)

        if failures:
            raise ShutdownError(f"{len(failures)} observer(s) failed to shut down", failures=failures)

    def _run(self, stop_event: threading.Event) -> None:
        """Tick until the stop event is set."""
        logger.debug("Monitor loop running")
        while not stop_event.is_set():
            for observer in self._observers:
                try:
                    observer.check_and_notify()
                except Exception:
                    logger.exception("Error while checking %r", observer)
            with self._ticks_lock:
                self._ticks += 1
            if stop_event.wait(self._interval):
                break
        logger.debug("Monitor loop exited")

    def get_monitoring_stats(self) -> dict[str, Any]:
        """
        Get monitoring statistics.

        Returns:
            Dictionary with lifecycle state and per-observer scan statistics
        """
        return {
            "monitoring_active": self._running,
            "interval_seconds": self._interval,
            "ticks": self.ticks,
            "observers": {str(observer.directory): observer.get_scan_stats() for observer in self._observers},
        }

    def __enter__(self) -> "FileAlterationMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._running:
            self.stop()

    def __repr__(self) -> str:
        state = "running" if self._running else "stopped"
        return f"{self.__class__.__name__}[interval={self._interval}, observers={len(self._observers)}, {state}]"
