import asyncio

from readiness import ReadinessReporter


class FakeProber:
    def __init__(self, result=True):
        self.result = result
        self.calls = []

    async def probe(self, timeout_ms=None, exercise_page=False):
        self.calls.append({"timeout_ms": timeout_ms, "exercise_page": exercise_page})
        await asyncio.sleep(0.01)
        return self.result


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_initial_state_is_not_ready():
    state = ReadinessReporter(FakeProber()).get()
    assert state.server_ready is False
    assert state.browser_ready is False
    assert state.last_checked is None


def test_mark_server_ready():
    reporter = ReadinessReporter(FakeProber())
    reporter.mark_server_ready()
    assert reporter.get().server_ready is True


async def test_browser_status_is_cached_within_ttl():
    prober = FakeProber()
    clock = FakeClock()
    reporter = ReadinessReporter(prober, ttl_seconds=300, clock=clock)

    first = await reporter.browser_status()
    clock.now += 299
    second = await reporter.browser_status()

    assert first["ready"] is True and first["cached"] is False
    assert second["ready"] is True and second["cached"] is True
    assert second["lastChecked"] == first["lastChecked"]
    assert len(prober.calls) == 1


async def test_browser_status_reprobes_after_ttl():
    prober = FakeProber()
    clock = FakeClock()
    reporter = ReadinessReporter(prober, ttl_seconds=300, clock=clock)

    await reporter.browser_status()
    clock.now += 301
    prober.result = False
    status = await reporter.browser_status()

    assert status == {"ready": False, "lastChecked": status["lastChecked"], "cached": False}
    assert len(prober.calls) == 2


async def test_concurrent_checks_share_one_probe():
    prober = FakeProber()
    reporter = ReadinessReporter(prober, clock=FakeClock())

    results = await asyncio.gather(*(reporter.browser_status() for _ in range(5)))

    assert len(prober.calls) == 1
    assert all(r["ready"] for r in results)


async def test_forced_refresh_always_probes():
    prober = FakeProber()
    reporter = ReadinessReporter(prober, clock=FakeClock())
    await reporter.refresh()
    await reporter.refresh(force=True)
    assert len(prober.calls) == 2


async def test_startup_check_exercises_a_page():
    prober = FakeProber(result=False)
    reporter = ReadinessReporter(prober, clock=FakeClock())

    assert await reporter.startup_check() is False
    assert prober.calls == [{"timeout_ms": 15000, "exercise_page": True}]
    assert reporter.get().browser_ready is False
    assert reporter.get().last_checked is not None
