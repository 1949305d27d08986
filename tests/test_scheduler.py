from farmrelay.datatypes import DebugLog
from farmrelay.scheduler import Scheduler


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


def test_runs_only_after_interval_strictly_passed():
    clock = FakeClock(0)
    calls = []
    sched = Scheduler(clock)
    assert sched.schedule(lambda: calls.append(clock.now), 100) is True
    clock.now = 100
    sched.handle()
    assert calls == []
    clock.now = 101
    sched.handle()
    assert calls == [101]


def test_start_resets_after_run():
    clock = FakeClock(0)
    calls = []
    sched = Scheduler(clock)
    sched.schedule(lambda: calls.append(clock.now), 100)
    clock.now = 101
    sched.handle()
    clock.now = 150
    sched.handle()
    assert calls == [101]
    clock.now = 202
    sched.handle()
    assert calls == [101, 202]


def test_schedule_full_after_sixteen():
    clock = FakeClock(0)
    lines = []
    sched = Scheduler(clock, DebugLog(0, True, lines.append))
    results = [sched.schedule(lambda: None, 10) for _ in range(16)]
    assert all(results)
    assert sched.schedule(lambda: None, 10) is False
    assert len(sched) == 16
    assert lines == ["    Schedule is full!"]


def test_clock_wraparound():
    clock = FakeClock(0xFFFFFFFF - 9)
    calls = []
    sched = Scheduler(clock)
    sched.schedule(lambda: calls.append(True), 50)
    clock.now = 50
    sched.handle()
    assert calls == [True]


def test_each_job_has_own_interval():
    clock = FakeClock(0)
    fast, slow = [], []
    sched = Scheduler(clock)
    sched.schedule(lambda: fast.append(clock.now), 10)
    sched.schedule(lambda: slow.append(clock.now), 1000)
    clock.now = 11
    sched.handle()
    assert fast == [11]
    assert slow == []