import threading
import time

from analytics.scheduler import PeriodicTask, Scheduler, SessionClock


def _wait_for(cond, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if cond():
            return True
        time.sleep(0.005)
    return cond()


def test_session_clock_is_monotonic():
    c = SessionClock()
    assert c.seconds == 0
    seen = [c.tick() for _ in range(5)]
    assert seen == [1, 2, 3, 4, 5] and c.seconds == 5


def test_periodic_task_runs_and_stops():
    calls = {"n": 0}
    task = PeriodicTask(0.01, lambda: calls.__setitem__("n", calls["n"] + 1), name="t")
    task.start()
    assert _wait_for(lambda: calls["n"] >= 3)
    task.stop()
    frozen = calls["n"]
    time.sleep(0.05)
    assert calls["n"] == frozen
    assert not task.running


def test_periodic_task_survives_exceptions():
    calls = {"n": 0}
    def boom():
        calls["n"] += 1
        raise ValueError("tick exploded")
    task = PeriodicTask(0.01, boom, name="boom")
    task.start()
    try:
        assert _wait_for(lambda: calls["n"] >= 3)
    finally:
        task.stop()


def test_scheduler_ticks_do_not_wait_on_each_other():
    clock = SessionClock()
    release = threading.Event()
    started = {"n": 0}

    def slow_detect():
        started["n"] += 1
        release.wait(1.0)

    sched = Scheduler(slow_detect, clock, detect_interval=0.01, clock_interval=0.01)
    sched.start()
    try:
        # clock keeps counting while the detection tick is blocked
        assert _wait_for(lambda: clock.seconds >= 5)
        assert started["n"] == 1
    finally:
        release.set()
        sched.stop()
    assert not sched.running
    frozen = clock.seconds
    time.sleep(0.05)
    assert clock.seconds == frozen
