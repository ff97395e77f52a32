import asyncio

from courtside.core.player_ref import RegisteredRef
from courtside.db.store_roster import RosterStore
from courtside.services.broadcaster import Broadcaster, HookBroadcaster, InMemoryBroadcaster


async def test_subscriber_receives_only_its_game():
    broadcaster = InMemoryBroadcaster()

    async with broadcaster.subscribe(1) as queue:
        await broadcaster.publish(1, "score_updated", {"homeScore": 2})
        await broadcaster.publish(2, "score_updated", {"homeScore": 9})

        message = queue.get_nowait()
        assert message["gameId"] == 1
        assert message["event"] == "score_updated"
        assert message["data"] == {"homeScore": 2}
        assert "timestamp" in message
        assert queue.empty()


async def test_unsubscribe_on_exit():
    broadcaster = InMemoryBroadcaster()

    async with broadcaster.subscribe(7):
        assert broadcaster.subscriber_count(7) == 1
    assert broadcaster.subscriber_count(7) == 0

    # nobody listening is fine
    await broadcaster.publish(7, "stats_locked", {"statsLocked": True})


async def test_full_queue_drops_events():
    broadcaster = InMemoryBroadcaster(queue_size=1)

    async with broadcaster.subscribe(1) as slow, broadcaster.subscribe(1) as fast:
        await broadcaster.publish(1, "activity_added", {"n": 1})
        fast.get_nowait()
        await broadcaster.publish(1, "activity_added", {"n": 2})

        assert slow.qsize() == 1
        assert slow.get_nowait()["data"] == {"n": 1}
        assert fast.get_nowait()["data"] == {"n": 2}


async def test_async_hook_receives_events_in_order():
    received = []

    async def hook(topic, message):
        await asyncio.sleep(0)
        received.append((topic, message["event"]))

    broadcaster = HookBroadcaster(hook)
    await broadcaster.publish(3, "score_updated", {"homeScore": 2})
    await broadcaster.publish(3, "activity_added", {})
    await broadcaster.join()

    assert received == [("game:3", "score_updated"), ("game:3", "activity_added")]


async def test_sync_hook_is_supported():
    received = []
    broadcaster = HookBroadcaster(lambda topic, message: received.append(topic))

    await broadcaster.publish(4, "status_updated", {"status": "completed"})
    await broadcaster.join()

    assert received == ["game:4"]


async def test_failing_hook_does_not_stop_later_events():
    received = []

    def hook(topic, message):
        if message["data"].get("fail"):
            raise ConnectionError("redis down")
        received.append(message["data"])

    broadcaster = HookBroadcaster(hook)
    await broadcaster.publish(1, "score_updated", {"fail": True})
    await broadcaster.publish(1, "score_updated", {"homeScore": 3})
    await broadcaster.join()

    assert received == [{"homeScore": 3}]


async def test_full_outbox_drops_instead_of_waiting():
    release = asyncio.Event()
    received = []

    async def hook(topic, message):
        await release.wait()
        received.append(message["data"]["n"])

    broadcaster = HookBroadcaster(hook, queue_size=1)
    for n in range(3):
        await broadcaster.publish(1, "activity_added", {"n": n})
    release.set()
    await broadcaster.join()

    assert received == [0]


async def test_publish_never_raises():
    class Broken(Broadcaster):
        def _dispatch(self, game_id, message):
            raise ConnectionError("redis down")

    await Broken().publish(1, "score_updated", {})


async def test_hung_hook_does_not_block_the_request(db, seed, admin):
    release = asyncio.Event()
    delivered = []

    async def hang(topic, message):
        await release.wait()
        delivered.append(message["event"])

    await seed.account("pat")
    game = await seed.game()
    broadcaster = HookBroadcaster(hang)
    roster = RosterStore(db, broadcaster)

    entry = await asyncio.wait_for(
        roster.add_to_roster(game.id, RegisteredRef("pat"), admin), timeout=1
    )
    assert entry["accountId"] == "pat"
    assert delivered == []

    release.set()
    await broadcaster.join()
    assert delivered == ["roster_updated", "activity_added"]

