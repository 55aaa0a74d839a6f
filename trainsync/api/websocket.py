"""WebSocket API endpoint"""
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.task_store import task_store
from ..websocket.manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/sync")
async def websocket_endpoint(websocket: WebSocket):
    """Push a snapshot on connect and after every store change"""
    await ws_manager.connect(websocket)

    try:
        await websocket.send_json({"type": "snapshot", "data": task_store.snapshot()})
        while True:
            data = await websocket.receive_json()

            if data.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
            elif data.get("type") == "snapshot":
                await websocket.send_json({"type": "snapshot", "data": task_store.snapshot()})

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected normally")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        ws_manager.disconnect(websocket)
