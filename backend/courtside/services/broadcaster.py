# Live update fan-out for games
import asyncio
import contextlib
import inspect
import logging
from collections import defaultdict
from datetime import datetime, timezone

from courtside.core.config import settings

logger = logging.getLogger(__name__)


class Broadcaster:
    """
    Fire-and-forget publisher of per-game change notifications.

    Delivery is best effort: no acks, no replay, no ordering across
    independent publishes. Subscribers that miss an event re-fetch state.
    `publish` never raises and never waits on a subscriber; `_dispatch`
    must hand the message off without blocking.
    """

    async def publish(self, game_id: int, event_kind: str, payload: dict):
        message = {
            "gameId": game_id,
            "event": event_kind,
            "data": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self._dispatch(game_id, message)
        except Exception as e:
            logger.warning(f"Dropped {event_kind} for game {game_id}: {e}")

    def _dispatch(self, game_id: int, message: dict):
        raise NotImplementedError


class InMemoryBroadcaster(Broadcaster):
    """Process-local pub/sub; each subscriber gets its own bounded queue."""

    def __init__(self, queue_size: int | None = None):
        self.queue_size = queue_size or settings.BROADCAST_QUEUE_SIZE
        self._subscribers = defaultdict(set)

    @contextlib.asynccontextmanager
    async def subscribe(self, game_id: int):
        queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers[game_id].add(queue)
        try:
            yield queue
        finally:
            self._subscribers[game_id].discard(queue)
            if not self._subscribers[game_id]:
                self._subscribers.pop(game_id, None)

    def subscriber_count(self, game_id: int) -> int:
        return len(self._subscribers.get(game_id, ()))

    def _dispatch(self, game_id: int, message: dict):
        for queue in list(self._subscribers.get(game_id, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning(f"Live subscriber for game {game_id} is full, dropping event")


class HookBroadcaster(Broadcaster):
    """
    Forwards to an external publish(topic, payload) hook, sync or async.

    Messages go through a bounded outbox drained by a background task, so a
    slow or hung hook delays later events but never the publishing request.
    """

    def __init__(self, hook, queue_size: int | None = None):
        self.hook = hook
        self._outbox = asyncio.Queue(maxsize=queue_size or settings.BROADCAST_QUEUE_SIZE)
        self._worker = None

    def _dispatch(self, game_id: int, message: dict):
        try:
            self._outbox.put_nowait((game_id, message))
        except asyncio.QueueFull:
            logger.warning(f"Broadcast outbox is full, dropping {message['event']} for game {game_id}")
            return
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    # exits once the outbox is empty; the next dispatch starts a new one
    async def _drain(self):
        while not self._outbox.empty():
            game_id, message = self._outbox.get_nowait()
            try:
                result = self.hook(f"game:{game_id}", message)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Dropped {message['event']} for game {game_id}: {e}")
            finally:
                self._outbox.task_done()

    async def join(self):
        """Wait until every queued message has been handed to the hook."""
        await self._outbox.join()
