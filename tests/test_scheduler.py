import asyncio

from worker.scheduler import RUNNING, STOPPED, TrackingScheduler

RESULT = {"total_products": 1, "new_products": 0, "total_new_matches": 0, "notified_users": 0}


class Recorder:
    def __init__(self):
        self.calls = 0
        self.saved = []

    async def run_pass(self):
        self.calls += 1
        return RESULT

    def save_state(self, is_tracking):
        self.saved.append(is_tracking)


def _scheduler(rec, interval=3600, load_state=None):
    return TrackingScheduler(
        run_pass=rec.run_pass,
        load_state=load_state or (lambda: {"is_tracking": False}),
        save_state=rec.save_state,
        interval_seconds=interval,
    )


def test_start_runs_a_pass_immediately_and_persists():
    rec = Recorder()

    async def scenario():
        s = _scheduler(rec)
        assert await s.start() is True
        await asyncio.sleep(0.05)
        assert rec.calls == 1
        assert s.state == RUNNING
        assert s.status()["last_result"] == RESULT
        assert s.status()["last_run_at"] is not None

        assert await s.start() is False
        assert await s.stop() is True
        assert await s.stop() is False
        assert s.state == STOPPED

    asyncio.run(scenario())
    assert rec.saved == [True, False]


def test_passes_repeat_every_interval():
    rec = Recorder()

    async def scenario():
        s = _scheduler(rec, interval=0.01)
        await s.start()
        await asyncio.sleep(0.15)
        await s.stop()
        return rec.calls

    assert asyncio.run(scenario()) >= 3


def test_stop_lets_running_pass_finish_without_rescheduling():
    state = {"calls": 0, "finished": 0}

    async def scenario():
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_pass():
            state["calls"] += 1
            started.set()
            await release.wait()
            state["finished"] += 1
            return RESULT

        s = TrackingScheduler(
            run_pass=slow_pass, load_state=dict, save_state=lambda v: None, interval_seconds=0
        )
        await s.start()
        await started.wait()
        assert s.status()["pass_in_progress"] is True

        await s.stop()
        release.set()
        await asyncio.sleep(0.05)
        assert s.status()["pass_in_progress"] is False

    asyncio.run(scenario())
    assert state == {"calls": 1, "finished": 1}


def test_restart_then_stop_during_a_pass_runs_no_further_pass():
    passes = []

    async def scenario():
        release = asyncio.Event()
        started = asyncio.Event()

        async def blocking_pass():
            passes.append(len(passes) + 1)
            started.set()
            await release.wait()
            return RESULT

        s = TrackingScheduler(
            run_pass=blocking_pass, load_state=dict, save_state=lambda v: None, interval_seconds=0
        )
        await s.start()
        await started.wait()
        await s.stop()
        await s.start()
        await asyncio.sleep(0.01)
        await s.stop()

        release.set()
        await asyncio.sleep(0.05)
        assert s.state == STOPPED
        assert s.status()["pass_in_progress"] is False

    asyncio.run(scenario())
    assert passes == [1]


def test_passes_never_overlap_across_restart():
    state = {"active": 0, "max_active": 0, "calls": 0}

    async def scenario():
        async def pass_():
            state["calls"] += 1
            state["active"] += 1
            state["max_active"] = max(state["max_active"], state["active"])
            await asyncio.sleep(0.03)
            state["active"] -= 1
            return RESULT

        s = TrackingScheduler(run_pass=pass_, load_state=dict, save_state=lambda v: None, interval_seconds=3600)
        await s.start()
        await asyncio.sleep(0.01)
        await s.stop()
        await s.start()
        await asyncio.sleep(0.1)
        await s.stop()

    asyncio.run(scenario())
    assert state["calls"] == 2
    assert state["max_active"] == 1


def test_failed_pass_is_logged_and_loop_continues(caplog):
    calls = []

    async def scenario():
        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("scrape exploded")
            return RESULT

        s = TrackingScheduler(run_pass=flaky, load_state=dict, save_state=lambda v: None, interval_seconds=0.01)
        await s.start()
        await asyncio.sleep(0.1)
        await s.stop()

    with caplog.at_level("ERROR", logger="scheduler"):
        asyncio.run(scenario())
    assert len(calls) >= 2
    assert "Tracking pass failed" in caplog.text


def test_persistence_failure_does_not_block_transitions(caplog):
    calls = []

    async def scenario():
        async def run_pass():
            calls.append(1)
            return RESULT

        def broken_save(value):
            raise RuntimeError("database down")

        s = TrackingScheduler(run_pass=run_pass, load_state=dict, save_state=broken_save, interval_seconds=3600)
        assert await s.start() is True
        await asyncio.sleep(0.05)
        assert await s.stop() is True

    with caplog.at_level("ERROR", logger="scheduler"):
        asyncio.run(scenario())
    assert calls == [1]
    assert "Failed to persist tracking state" in caplog.text


def test_restore_resumes_only_when_persisted_on():
    rec = Recorder()

    async def scenario():
        on = _scheduler(rec, load_state=lambda: {"is_tracking": True})
        assert await on.restore() is True
        assert on.is_tracking
        await asyncio.sleep(0.05)
        await on.shutdown()

        off = _scheduler(rec, load_state=lambda: {"is_tracking": False, "last_updated": None})
        assert await off.restore() is False
        assert not off.is_tracking

        def unreachable():
            raise RuntimeError("connection refused")

        broken = _scheduler(rec, load_state=unreachable)
        assert await broken.restore() is False

    asyncio.run(scenario())
    assert rec.calls == 1


def test_shutdown_does_not_touch_persisted_state():
    rec = Recorder()

    async def scenario():
        s = _scheduler(rec)
        await s.start()
        await asyncio.sleep(0.05)
        await s.shutdown()
        assert s.state == STOPPED

    asyncio.run(scenario())
    assert rec.saved == [True]
