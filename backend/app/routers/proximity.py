"""
NoTouch Proximity Router
WebSocket endpoints for live hand-near-head monitoring.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from touch_model import StatisticsService
from touch_model.storage import Clock

from app.core.config import settings
from app.services.proximity_session import ProximitySession, config_to_dict
from app.services.statistics_provider import default_proximity_config, get_clock, get_statistics_service
from app.services.websocket_manager import ws_manager

logger = logging.getLogger("notouch.api.proximity")

router = APIRouter(tags=["Proximity"])


@router.websocket("/ws/proximity")
async def websocket_proximity(
    websocket: WebSocket,
    statistics: StatisticsService = Depends(get_statistics_service),
    clock: Clock = Depends(get_clock),
):
    """
    Real-time proximity monitoring WebSocket.

    Protocol:
    - Client sends landmark frames as JSON:
      {"type": "landmarks", "width": 640, "height": 480,
       "face": [[x, y], ...], "hands": [{"landmarks": [...], "score": 0.9}]}
    - Server responds with:
      {"type": "proximity", "data": {...}, "frame_number": n}
      plus {"type": "state", ...} and {"type": "alert", ...} as they happen
    - Client can send control messages:
      {"type": "config", "data": {"sensitivity": 0.7, ...}}
      {"type": "reset"}
      {"type": "ping"}
    """
    await ws_manager.connect(websocket, "proximity")

    session = ProximitySession(
        statistics,
        config=default_proximity_config(),
        clock=clock,
        min_hand_confidence=settings.MIN_HAND_CONFIDENCE,
    )
    logger.info("Proximity WebSocket connected (config=%s)", config_to_dict(session.analyzer.config))

    await websocket.send_json({"type": "config", "data": config_to_dict(session.analyzer.config)})

    loop = asyncio.get_event_loop()

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            # Alerts commit to the database; keep that off the event loop
            replies = await loop.run_in_executor(None, session.handle_message, msg)
            for reply in replies:
                await websocket.send_json(reply)
                if reply["type"] == "alert":
                    await ws_manager.send_alert(reply["data"])

    except WebSocketDisconnect:
        logger.info(
            "Proximity client disconnected (frames=%d, alerts=%d)",
            session.frame_count, session.alert_count,
        )
    except Exception as e:
        logger.error("Proximity WS error: %s", e, exc_info=True)
    finally:
        ws_manager.disconnect(websocket, "proximity")


@router.websocket("/ws/alerts")
async def websocket_alerts(websocket: WebSocket):
    """Touch alert stream for passive listeners"""
    await ws_manager.connect(websocket, "alerts")
    try:
        while True:
            # Keep connection alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket, "alerts")
