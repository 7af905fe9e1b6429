from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from collabhub.api.deps import RelayDep
from collabhub.config import settings
from collabhub.infrastructure.ws.protocol import OutboundEvent
from collabhub.infrastructure.ws.relay import RealtimeRelay
from collabhub.infrastructure.ws.session import ConnectionSession

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket("/ws/realtime")
async def ws_realtime(
    websocket: WebSocket,
    relay: RelayDep,
    token: str | None = Query(None),
) -> None:
    session = await relay.connect(websocket, token)
    if session is None:
        return

    heartbeat_task = asyncio.create_task(
        _heartbeat(session), name=f"ws-heartbeat-{session.connection_id}",
    )
    try:
        await _read_loop(websocket, session, relay)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", session.connection_id)
    finally:
        heartbeat_task.cancel()
        relay.disconnect(session)


async def _heartbeat(session: ConnectionSession) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            if not await session.send(OutboundEvent.PONG, {}):
                return
    except asyncio.CancelledError:
        pass


async def _read_loop(ws: WebSocket, session: ConnectionSession, relay: RealtimeRelay) -> None:
    while True:
        raw = await ws.receive_text()
        if not await relay.dispatch(session, raw):
            return
