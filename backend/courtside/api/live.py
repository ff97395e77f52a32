import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from courtside.services.broadcaster import InMemoryBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter()


# Streams score/activity/roster events for one game. Best effort: clients
# re-fetch the game after reconnecting.
@router.websocket("/{game_id}/live")
async def live_updates(websocket: WebSocket, game_id: int):
    broadcaster = websocket.app.state.broadcaster
    if not isinstance(broadcaster, InMemoryBroadcaster):
        # events go to an external hook; nothing to stream from here
        await websocket.close(code=1011)
        return
    await websocket.accept()
    async with broadcaster.subscribe(game_id) as queue:
        try:
            while True:
                message = await queue.get()
                await websocket.send_json(message)
        except WebSocketDisconnect:
            logger.info(f"Live subscriber left game {game_id}")
