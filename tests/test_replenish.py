import asyncio

from roulette.candidate import Candidate
from roulette.client import ReplenishmentFailure
from roulette.config import MSG_REFRESHED, MSG_REPLENISH_FAILED, SwipeSettings
from roulette.decision import Decision, DecisionTally, SwipeDecisionEngine
from roulette.gesture import GestureTracker, Point
from roulette.replenish import ReplenishmentPolicy
from roulette.stack import CardStack


def cand(cid: str) -> Candidate:
    return Candidate(id=cid, title=f"Intern {cid}", organization="Acme")


class DummySource:
    """Hands out prepared batches; optionally waits on a gate first."""

    def __init__(self, *batches, fail: bool = False):
        self.batches = [list(b) for b in batches]
        self.fail = fail
        self.calls = 0
        self.gate = None

    async def fetch_candidates(self, count):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ReplenishmentFailure("backend down", status_code=500)
        return self.batches.pop(0) if self.batches else []


class DummySink:
    async def record_decision(self, candidate_id, decision):
        return None


def wire(ids, source):
    stack = CardStack([cand(i) for i in ids])
    tally = DecisionTally()
    engine = SwipeDecisionEngine(stack, GestureTracker(), DummySink(), tally=tally)
    policy = ReplenishmentPolicy(
        stack, source, tally,
        notifications=engine.notifications,
        lifetime=engine.lifetime,
        on_reset=engine.abort_drag,
    )
    engine.on_commit = policy.on_commit
    return engine, policy


def test_commit_at_watermark_triggers_replenishment():
    async def scenario():
        source = DummySource([cand("z"), cand("w")])
        engine, policy = wire("xy", source)
        engine.decide("right")
        assert engine.stack.ids() == ["y"]
        assert policy.in_flight
        await engine.lifetime.drain()
        return engine, policy, source

    engine, policy, source = asyncio.run(scenario())
    assert source.calls == 1
    assert engine.stack.ids() == ["y", "z", "w"]
    assert not policy.in_flight


def test_deep_stack_does_not_replenish():
    async def scenario():
        source = DummySource([cand("n")])
        engine, policy = wire("abcde", source)
        engine.decide("left")
        await engine.lifetime.drain()
        return source

    assert asyncio.run(scenario()).calls == 0


def test_concurrent_triggers_coalesce_into_one_fetch():
    async def scenario():
        source = DummySource([cand("z"), cand("w")])
        source.gate = asyncio.Event()
        engine, policy = wire("abc", source)
        engine.decide("right")  # -> [b, c], at watermark
        engine.decide("left")   # -> [c], fetch still pending
        assert policy.check() is None
        await asyncio.sleep(0)
        source.gate.set()
        await engine.lifetime.drain()
        return engine, source

    engine, source = asyncio.run(scenario())
    assert source.calls == 1
    assert engine.stack.ids() == ["c", "z", "w"]


def test_replenished_duplicates_are_filtered():
    async def scenario():
        source = DummySource([cand("c"), cand("d")])
        engine, policy = wire("bc", source)
        engine.decide("right")
        await engine.lifetime.drain()
        return engine

    assert asyncio.run(scenario()).stack.ids() == ["c", "d"]


def test_failed_replenishment_leaves_stack_and_raises_banner():
    async def scenario():
        source = DummySource(fail=True)
        engine, policy = wire("a", source)
        engine.decide("right")
        await engine.lifetime.drain()
        return engine, policy

    engine, policy = asyncio.run(scenario())
    assert len(engine.stack) == 0
    assert engine.stack.head().is_empty
    banners = [n for n in engine.notifications.active() if n.kind == "banner"]
    assert [n.message for n in banners] == [MSG_REPLENISH_FAILED]
    assert not policy.in_flight


def test_manual_refresh_replaces_stack_and_zeroes_tally():
    async def scenario():
        source = DummySource([cand("r"), cand("s"), cand("t")])
        engine, policy = wire("pq", source)
        engine.tally.accepted, engine.tally.rejected = 3, 2
        ok = await policy.refresh()
        return engine, ok

    engine, ok = asyncio.run(scenario())
    assert ok
    assert engine.stack.ids() == ["r", "s", "t"]
    assert (engine.tally.accepted, engine.tally.rejected) == (0, 0)
    assert [n.message for n in engine.notifications.active()] == [MSG_REFRESHED]


def test_failed_refresh_keeps_cards_and_tally():
    async def scenario():
        engine, policy = wire("pq", DummySource(fail=True))
        engine.tally.record(Decision.ACCEPT)
        ok = await policy.refresh()
        return engine, ok

    engine, ok = asyncio.run(scenario())
    assert not ok
    assert engine.stack.ids() == ["p", "q"]
    assert engine.tally.accepted == 1


def test_replenishment_overtaken_by_refresh_is_discarded():
    async def scenario():
        source = DummySource([cand("old")], [cand("new1"), cand("new2")])
        source.gate = asyncio.Event()
        engine, policy = wire("ab", source)
        engine.decide("right")  # replenishment starts, blocked on the gate
        await asyncio.sleep(0)
        refresh = asyncio.create_task(policy.refresh())
        await asyncio.sleep(0)
        source.gate.set()
        ok = await refresh
        await engine.lifetime.drain()
        return engine, source, ok

    engine, source, ok = asyncio.run(scenario())
    assert ok
    assert source.calls == 2
    # first batch went to the stale replenishment and was thrown away
    assert engine.stack.ids() == ["new1", "new2"]


def test_refresh_during_drag_aborts_the_drag():
    async def scenario():
        engine, policy = wire("ab", DummySource([cand("c")]))
        engine.begin(Point(0, 0))
        engine.update(Point(150, 0))
        await policy.refresh(announce=False)
        return engine

    engine = asyncio.run(scenario())
    assert not engine.tracker.active
    assert engine.stack.ids() == ["c"]
    assert engine.tally.total == 0


def test_watermark_follows_settings():
    stack = CardStack([cand(i) for i in "abcd"])
    policy = ReplenishmentPolicy(
        stack, DummySource(), DecisionTally(),
        settings=SwipeSettings(replenish_watermark=3, visible_window=5),
    )
    assert not policy.below_watermark()
    stack.pop_head()
    assert policy.below_watermark()


def test_commit_during_refresh_does_not_start_a_second_fetch():
    async def scenario():
        source = DummySource([cand("old")], [cand("r"), cand("s"), cand("t")])
        source.gate = asyncio.Event()
        engine, policy = wire("abc", source)
        engine.decide("right")  # [b, c]: replenishment starts and blocks
        await asyncio.sleep(0)
        refresh = asyncio.create_task(policy.refresh())
        await asyncio.sleep(0)
        engine.decide("left")   # [c]: still below the watermark
        await asyncio.sleep(0)
        calls_while_pending = source.calls
        still_in_flight = policy.in_flight
        source.gate.set()
        ok = await refresh
        await engine.lifetime.drain()
        return engine, policy, source, calls_while_pending, still_in_flight, ok

    engine, policy, source, calls_while_pending, still_in_flight, ok = asyncio.run(scenario())
    assert calls_while_pending == 2  # one replenishment + the refresh
    assert still_in_flight
    assert ok
    assert source.calls == 2
    assert engine.stack.ids() == ["r", "s", "t"]
    assert not policy.in_flight
