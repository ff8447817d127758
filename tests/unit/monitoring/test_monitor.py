"""Unit tests for the polling monitor."""

import logging
import threading
import time
from unittest.mock import Mock

import pytest
from treewatch.config import WatcherConfig
from treewatch.models import (
    InitializationError,
    LifecycleError,
    MonitorAlreadyRunningError,
    MonitorNotRunningError,
    ShutdownError,
)
from treewatch.monitoring import (
    EventRecorder,
    FileAlterationListenerAdaptor,
    FileAlterationMonitor,
    FileAlterationObserver,
    thread_spawner,
)
from treewatch.storage import InMemoryStorageProvider


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll a predicate until it holds or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def config():
    return WatcherConfig(poll_interval_seconds=0.05, stop_timeout_seconds=None)


@pytest.fixture
def storage():
    storage = InMemoryStorageProvider()
    storage.mkdir("/watched")
    return storage


@pytest.fixture
def fake_handle():
    handle = Mock()
    handle.is_alive.return_value = False
    return handle


@pytest.fixture
def fake_spawner(fake_handle):
    return Mock(return_value=fake_handle)


class TestMonitorConstruction:
    """Test cases for monitor construction and observer registration."""

    def test_interval_from_config(self, config):
        """Test that the configured interval is used when none is given."""
        monitor = FileAlterationMonitor(config=config)

        assert monitor.interval == 0.05
        assert monitor.observers == ()
        assert not monitor.is_running

    @pytest.mark.parametrize("interval", [0, -1.5])
    def test_non_positive_interval_rejected(self, config, interval):
        """Test that a zero or negative interval is rejected."""
        with pytest.raises(ValueError, match="Interval must be positive"):
            FileAlterationMonitor(interval, config=config)

    def test_observers_from_constructor_skip_none(self, config, storage):
        """Test that None observers passed at construction are ignored."""
        first = FileAlterationObserver("/watched", storage=storage)
        second = FileAlterationObserver("/other", storage=storage)

        monitor = FileAlterationMonitor(1.0, first, None, second, config=config)

        assert monitor.observers == (first, second)

    def test_add_and_remove_observers(self, config, storage):
        """Test observer registration, including None and duplicates."""
        observer = FileAlterationObserver("/watched", storage=storage)
        monitor = FileAlterationMonitor(1.0, config=config)

        monitor.add_observer(None)
        monitor.add_observer(observer)
        monitor.add_observer(observer)
        assert monitor.observers == (observer, observer)

        monitor.remove_observer(None)
        monitor.remove_observer(observer)
        assert monitor.observers == ()

    def test_repr(self, config):
        """Test the string representation."""
        monitor = FileAlterationMonitor(2.0, config=config)

        assert repr(monitor) == "FileAlterationMonitor[interval=2.0, observers=0, stopped]"


class TestMonitorLifecycle:
    """Test cases for start/stop transitions with a fake task spawner."""

    def test_start_initializes_observers_then_spawns(self, config, fake_spawner):
        """Test that observers are initialized before the loop is spawned."""
        order = []
        observer = Mock(spec=FileAlterationObserver)
        observer.initialize.side_effect = lambda: order.append("initialize")
        fake_spawner.side_effect = lambda target: order.append("spawn") or Mock(is_alive=Mock(return_value=False))
        monitor = FileAlterationMonitor(1.0, observer, task_spawner=fake_spawner, config=config)

        monitor.start()

        assert order == ["initialize", "spawn"]
        assert monitor.is_running

    def test_start_twice_raises(self, config, fake_spawner):
        """Test that starting a running monitor raises."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)
        monitor.start()

        with pytest.raises(MonitorAlreadyRunningError) as exc_info:
            monitor.start()

        assert isinstance(exc_info.value, LifecycleError)
        assert exc_info.value.error_code == "LIFECYCLE_ERROR"
        assert fake_spawner.call_count == 1

    def test_stop_without_start_raises(self, config, fake_spawner):
        """Test that stopping a monitor that never started raises."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)

        with pytest.raises(MonitorNotRunningError):
            monitor.stop()

    def test_stop_twice_raises(self, config, fake_spawner):
        """Test that stopping a stopped monitor raises."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)
        monitor.start()
        monitor.stop()

        with pytest.raises(MonitorNotRunningError):
            monitor.stop()

    def test_restart_after_stop(self, config, fake_spawner):
        """Test that a stopped monitor can be started again."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)

        monitor.start()
        monitor.stop()
        monitor.start()

        assert monitor.is_running
        assert fake_spawner.call_count == 2

    def test_initialization_failure_leaves_monitor_stopped(self, config, fake_spawner):
        """Test that a failing observer prevents the loop from starting."""
        observer = Mock(spec=FileAlterationObserver)
        observer.initialize.side_effect = InitializationError("root unreadable", path="/watched")
        monitor = FileAlterationMonitor(1.0, observer, task_spawner=fake_spawner, config=config)

        with pytest.raises(InitializationError):
            monitor.start()

        assert not monitor.is_running
        fake_spawner.assert_not_called()

    def test_spawn_failure_leaves_monitor_stopped(self, config):
        """Test that a spawner failure propagates and resets the state."""
        spawner = Mock(side_effect=RuntimeError("cannot start thread"))
        monitor = FileAlterationMonitor(1.0, task_spawner=spawner, config=config)

        with pytest.raises(RuntimeError, match="cannot start thread"):
            monitor.start()

        assert not monitor.is_running

    @pytest.mark.parametrize(
        "timeout,expected_join",
        [
            (0, None),
            (2.5, 2.5),
            (None, 1.0),
        ],
    )
    def test_stop_join_timeout(self, config, fake_spawner, fake_handle, timeout, expected_join):
        """Test how the stop timeout is passed on to the task handle."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)
        monitor.start()

        monitor.stop(timeout)

        fake_handle.join.assert_called_once_with(expected_join)

    def test_stop_uses_configured_timeout(self, fake_spawner, fake_handle):
        """Test that a configured stop timeout replaces the interval default."""
        config = WatcherConfig(poll_interval_seconds=1.0, stop_timeout_seconds=7.0)
        monitor = FileAlterationMonitor(task_spawner=fake_spawner, config=config)
        monitor.start()

        monitor.stop()

        fake_handle.join.assert_called_once_with(7.0)

    def test_stop_warns_when_task_still_alive(self, config, fake_spawner, fake_handle, caplog):
        """Test that a loop outliving the timeout is logged, not raised."""
        fake_handle.is_alive.return_value = True
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)
        monitor.start()

        with caplog.at_level(logging.WARNING, logger="treewatch.monitoring.monitor"):
            monitor.stop(0.1)

        assert not monitor.is_running
        assert "did not exit" in caplog.text

    def test_stop_destroys_observers(self, config, fake_spawner):
        """Test that every observer is destroyed on stop."""
        first = Mock(spec=FileAlterationObserver)
        second = Mock(spec=FileAlterationObserver)
        monitor = FileAlterationMonitor(1.0, first, second, task_spawner=fake_spawner, config=config)
        monitor.start()

        monitor.stop()

        first.destroy.assert_called_once_with()
        second.destroy.assert_called_once_with()

    def test_destroy_failures_aggregated(self, config, fake_spawner):
        """Test that destroy failures do not stop other observers from being destroyed."""
        failing = Mock(spec=FileAlterationObserver)
        failing.destroy.side_effect = OSError("disk gone")
        healthy = Mock(spec=FileAlterationObserver)
        monitor = FileAlterationMonitor(1.0, failing, healthy, task_spawner=fake_spawner, config=config)
        monitor.start()

        with pytest.raises(ShutdownError) as exc_info:
            monitor.stop()

        healthy.destroy.assert_called_once_with()
        assert not monitor.is_running
        assert len(exc_info.value.failures) == 1
        assert exc_info.value.context["failure_count"] == 1

    def test_context_manager(self, config, fake_spawner):
        """Test that the context manager starts and stops the monitor."""
        monitor = FileAlterationMonitor(1.0, task_spawner=fake_spawner, config=config)

        with monitor as running:
            assert running is monitor
            assert monitor.is_running

        assert not monitor.is_running


class TestMonitorLoop:
    """Test cases running the real background thread."""

    def test_events_reach_listeners(self, config, storage):
        """Test that changes are picked up by the background loop."""
        recorder = EventRecorder()
        observer = FileAlterationObserver("/watched", storage=storage)
        observer.add_listener(recorder)
        monitor = FileAlterationMonitor(0.02, observer, config=config)

        with monitor:
            storage.write("/watched/a.txt", "a")
            assert wait_for(lambda: len(recorder.created_files) == 1)

            storage.remove("/watched/a.txt")
            assert wait_for(lambda: len(recorder.deleted_files) == 1)

        assert [str(path) for path in recorder.created_files] == ["/watched/a.txt"]
        assert [str(path) for path in recorder.deleted_files] == ["/watched/a.txt"]

    def test_stop_interrupts_long_interval(self, config, storage):
        """Test that stop does not wait for a long interval to elapse."""
        observer = FileAlterationObserver("/watched", storage=storage)
        monitor = FileAlterationMonitor(30.0, observer, config=config)
        monitor.start()
        assert wait_for(lambda: observer.get_scan_stats()["scans"] >= 1)

        started = time.monotonic()
        monitor.stop(5.0)

        assert time.monotonic() - started < 2.0

    def test_loop_survives_listener_failure(self, config, storage):
        """Test that a failing observer does not stop the others from being checked."""

        class Failing(FileAlterationListenerAdaptor):
            def on_start(self, observer):
                raise RuntimeError("broken listener")

        broken = FileAlterationObserver("/watched", storage=storage)
        broken.add_listener(Failing())
        recorder = EventRecorder()
        healthy = FileAlterationObserver("/watched", storage=storage)
        healthy.add_listener(recorder)
        monitor = FileAlterationMonitor(0.02, broken, healthy, config=config)

        with monitor:
            storage.write("/watched/a.txt", "a")
            assert wait_for(lambda: len(recorder.created_files) == 1)
            assert wait_for(lambda: monitor.get_monitoring_stats()["ticks"] >= 2)

    def test_custom_thread_spawner(self, config, storage):
        """Test that the spawner returned by thread_spawner names its thread."""
        spawned = []
        base = thread_spawner(daemon=True, name="tree-poller")

        def spawner(target):
            thread = base(target)
            spawned.append(thread)
            return thread

        monitor = FileAlterationMonitor(0.02, FileAlterationObserver("/watched", storage=storage), task_spawner=spawner, config=config)
        monitor.start()
        monitor.stop(5.0)

        assert len(spawned) == 1
        assert spawned[0].name == "tree-poller"
        assert spawned[0].daemon
        assert not spawned[0].is_alive()

    def test_stop_from_listener_thread(self, config, storage):
        """Test that a listener may stop the monitor from inside the loop."""
        stopped = threading.Event()
        monitor = FileAlterationMonitor(0.02, config=config)

        class Stopper(FileAlterationListenerAdaptor):
            def on_stop(self, observer):
                if monitor.is_running:
                    monitor.stop()
                    stopped.set()

        observer = FileAlterationObserver("/watched", storage=storage)
        observer.add_listener(Stopper())
        monitor.add_observer(observer)
        monitor.start()

        assert stopped.wait(5.0)
        assert not monitor.is_running

    def test_concurrent_stop_from_listener_and_caller(self, config, storage):
        """Test that a blocking stop does not hold up a stop issued from the loop thread."""
        in_listener = threading.Event()
        release = threading.Event()
        outcomes = []
        monitor = FileAlterationMonitor(0.02, config=config)

        class StopOnce(FileAlterationListenerAdaptor):
            fired = False

            def on_stop(self, observer):
                if self.fired:
                    return
                self.fired = True
                in_listener.set()
                release.wait(5.0)
                time.sleep(0.05)
                try:
                    monitor.stop()
                    outcomes.append("listener stopped")
                except MonitorNotRunningError:
                    outcomes.append("listener saw stopped")

        observer = FileAlterationObserver("/watched", storage=storage)
        observer.add_listener(StopOnce())
        monitor.add_observer(observer)
        monitor.start()
        assert in_listener.wait(5.0)

        def stop_and_wait():
            release.set()
            try:
                monitor.stop(0)
                outcomes.append("caller stopped")
            except MonitorNotRunningError:
                outcomes.append("caller saw stopped")

        caller = threading.Thread(target=stop_and_wait, daemon=True)
        caller.start()
        caller.join(5.0)

        assert not caller.is_alive()
        assert not monitor.is_running
        assert len(outcomes) == 2
        assert len([outcome for outcome in outcomes if "saw" not in outcome]) == 1

    def test_monitoring_stats(self, config, storage):
        """Test the statistics snapshot."""
        observer = FileAlterationObserver("/watched", storage=storage)
        monitor = FileAlterationMonitor(0.02, observer, config=config)

        with monitor:
            assert wait_for(lambda: monitor.get_monitoring_stats()["ticks"] >= 1)
            stats = monitor.get_monitoring_stats()

        assert stats["monitoring_active"] is True
        assert stats["interval_seconds"] == 0.02
        assert stats["observers"]["/watched"]["scans"] >= 1
        assert monitor.ticks >= stats["ticks"]
        assert monitor.get_monitoring_stats()["monitoring_active"] is False
