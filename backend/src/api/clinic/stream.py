# pyright: reportMissingTypeStubs=false
"""
Live change stream for a clinic.

Clients open ``/api/clinic/stream?token=<access token>`` and receive every
staff and invitation change of their clinic as a JSON message, so lists can
update without polling.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect

from auth.dependencies import get_jwt_service, resolve_profile
from core.database import get_db_context
from services.change_feed import ChangeFeed, Event, clinic_topic
from services.jwt_service import JWTService

logger = logging.getLogger(__name__)

router = APIRouter()

# Policy violation, used for every authentication failure
WS_POLICY_VIOLATION = 1008


async def _forward_events(websocket: WebSocket, queue: "asyncio.Queue[Event]") -> None:
    while True:
        event = await queue.get()
        try:
            await websocket.send_json(event)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info(f"Stopped forwarding events to closed stream: {e}")
            return


@router.websocket("/stream")
async def clinic_stream(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    jwt_service: JWTService = Depends(get_jwt_service)
) -> None:
    """Stream the caller's clinic change events until the client disconnects."""
    payload = jwt_service.verify_token(token) if token else None
    # Short-lived session: an open stream must not hold a pooled connection
    try:
        with get_db_context() as db:
            profile = resolve_profile(db, payload)
    except HTTPException as e:
        await websocket.close(code=WS_POLICY_VIOLATION, reason=str(e.detail))
        return

    topic = clinic_topic(profile.clinic_id)
    feed: ChangeFeed = websocket.app.state.change_feed
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[Event]" = asyncio.Queue()

    # Publishers may run on other threads; hand events to this loop
    def enqueue(event: Event) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    # Subscribe before accepting so no event after the handshake is missed
    with feed.listen(topic, enqueue):
        await websocket.accept()
        logger.info(f"Stream opened for {profile.uid} on {topic}")
        forwarder = asyncio.create_task(_forward_events(websocket, queue))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"Stream closed for {profile.uid} on {topic}")
        finally:
            forwarder.cancel()
