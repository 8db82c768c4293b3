"""
WebSocket rooms for live check-in and seating updates
"""

import json
import logging
from typing import Dict, List
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session

from seatherder.core.db import get_db
from seatherder.services.repositories import EventRepo

logger = logging.getLogger(__name__)

class WebSocketManager:
    """Manages WebSocket connections per event"""

    def __init__(self):
        # event public code -> connected sockets
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, event_code: str):
        """Accept WebSocket connection and add it to the event room"""
        await websocket.accept()
        self.active_connections.setdefault(event_code, []).append(websocket)
        logger.info(f"WebSocket connected to event {event_code}. "
                    f"Total connections: {len(self.active_connections[event_code])}")

    def disconnect(self, websocket: WebSocket, event_code: str):
        """Remove WebSocket connection from the event room"""
        connections = self.active_connections.get(event_code)
        if not connections or websocket not in connections:
            return

        connections.remove(websocket)
        logger.info(f"WebSocket disconnected from event {event_code}. "
                    f"Remaining connections: {len(connections)}")
        if not connections:
            del self.active_connections[event_code]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to a single WebSocket"""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast_to_event(self, event_code: str, message: dict):
        """Broadcast message to every WebSocket in an event room"""
        if event_code not in self.active_connections:
            logger.debug(f"No active connections for event {event_code}")
            return

        disconnected = []
        for websocket in list(self.active_connections[event_code]):
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.error(f"Error broadcasting to websocket: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, event_code)

    def get_connection_count(self, event_code: str) -> int:
        """Number of active connections for an event"""
        return len(self.active_connections.get(event_code, []))

# Shared manager for the whole application
websocket_manager = WebSocketManager()

router = APIRouter()

@router.websocket("/events/{event_code}")
async def websocket_endpoint(
    websocket: WebSocket,
    event_code: str,
    db: Session = Depends(get_db)
):
    """Live updates for an event: check-ins, reseating, guest edits"""
    event = EventRepo.get_by_public_code(db, event_code)
    if not event:
        await websocket.close(code=4004, reason="Event not found")
        return

    await websocket_manager.connect(websocket, event_code)

    try:
        await websocket_manager.send_personal_message({
            "type": "connection",
            "message": f"Connected to event: {event.name}",
            "event_code": event_code,
            "connection_count": websocket_manager.get_connection_count(event_code)
        }, websocket)

        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue

            if client_message.get("type") == "ping":
                await websocket_manager.send_personal_message({
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }, websocket)

    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(websocket, event_code)
