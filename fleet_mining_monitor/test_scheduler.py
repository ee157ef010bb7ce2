import threading
import time

from ai_engine.scheduler import OptimizationScheduler, PeriodicTask


def test_periodic_task_runs_and_stops():
    ticked = threading.Event()
    task = PeriodicTask("test-task", 0.01, ticked.set)

    assert task.start() is True
    assert ticked.wait(2.0)
    task.stop()

    assert task.is_running() is False


def test_periodic_task_survives_callback_errors():
    calls = []
    done = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) >= 2:
            done.set()
        raise RuntimeError("boom")

    task = PeriodicTask("failing-task", 0.01, callback)
    task.start()
    assert done.wait(2.0)
    task.stop()


def test_periodic_task_restarts():
    ticks = []
    ticked = threading.Event()

    def tick():
        ticks.append(1)
        ticked.set()

    task = PeriodicTask("restart-task", 0.01, tick)
    task.start()
    assert ticked.wait(2.0)
    task.stop()
    count = len(ticks)
    time.sleep(0.05)
    assert len(ticks) == count

    restarted = threading.Event()
    task.callback = restarted.set
    task.start()
    assert restarted.wait(2.0)
    task.stop()
    assert len(ticks) == count


def test_scheduler_owns_two_independent_tasks():
    scheduler = OptimizationScheduler(lambda: None, 3600, lambda: None, 7200)

    assert scheduler.tasks["optimization"].interval_seconds == 3600
    assert scheduler.tasks["self_improvement"].interval_seconds == 7200

    scheduler.start()
    assert scheduler.is_running()
    scheduler.stop()
    assert not scheduler.is_running()
