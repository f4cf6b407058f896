"""WebSocket channel that tells inbox clients to refetch emails."""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from litestar import WebSocket, websocket
from litestar.exceptions import WebSocketDisconnect
from litestar.status_codes import WS_1008_POLICY_VIOLATION
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.models import Organization

logger = logging.getLogger("Soluly.realtime")

EMAILS_CHANGED = {"type": "emails_changed"}


@dataclass
class EmailRoom:
    """Sockets watching one organization's inbox."""
    organization_id: str
    connections: Set[WebSocket] = field(default_factory=set)
    
    async def broadcast(self, message: dict) -> None:
        """Send message to every socket; sockets that fail are dropped."""
        disconnected = []
        # Sockets may join or leave while a send is awaited
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send to inbox socket for {self.organization_id}: {e}")
                disconnected.append(ws)
        
        for ws in disconnected:
            self.connections.discard(ws)
    
    def add_connection(self, ws: WebSocket) -> None:
        self.connections.add(ws)
    
    def remove_connection(self, ws: WebSocket) -> None:
        self.connections.discard(ws)
    
    @property
    def connection_count(self) -> int:
        return len(self.connections)


class EmailRoomManager:
    """Tracks inbox rooms keyed by organization id."""
    
    def __init__(self):
        self._rooms: Dict[str, EmailRoom] = {}
    
    def get_room(self, organization_id: str) -> EmailRoom:
        """Get or create the room for an organization."""
        key = str(organization_id).lower()
        if key not in self._rooms:
            self._rooms[key] = EmailRoom(organization_id=key)
        return self._rooms[key]
    
    def remove_room(self, organization_id: str) -> None:
        self._rooms.pop(str(organization_id).lower(), None)
    
    def get_all_rooms(self) -> Dict[str, EmailRoom]:
        return self._rooms.copy()


# Global room manager instance
room_manager = EmailRoomManager()


async def broadcast_emails_changed(organization_id: str) -> None:
    """
    Notify inbox clients of an organization that emails changed.
    
    Called by the email controller after every committed mutation.
    """
    room = room_manager.get_room(organization_id)
    if room.connection_count > 0:
        await room.broadcast(EMAILS_CHANGED)
        logger.debug(f"Broadcast emails_changed to {room.connection_count} socket(s) of {organization_id}")
    else:
        room_manager.remove_room(organization_id)


async def find_organization(session: AsyncSession, organization_id: str) -> Optional[Organization]:
    try:
        key = uuid.UUID(organization_id)
    except ValueError:
        return None
    return await session.get(Organization, key)


async def serve_inbox(socket: WebSocket, organization_id: str, session: AsyncSession) -> None:
    """
    Inbox change notifications for one socket.
    
    Sockets naming an unknown organization are closed with 1008 before
    joining any room.
    
    Message types (client -> server):
    - {"type": "ping"}
    
    Message types (server -> client):
    - {"type": "emails_changed"}  - refetch the email list
    - {"type": "pong"}
    - {"type": "error", "message": "..."}
    """
    organization = await find_organization(session, organization_id)
    # Sockets are long lived; give the connection back to the pool
    await session.close()
    if organization is None:
        logger.warning(f"Inbox socket refused for unknown organization {organization_id}")
        await socket.close(code=WS_1008_POLICY_VIOLATION, reason="Unknown organization")
        return
    
    room_key = str(organization.id)
    await socket.accept()
    
    room = room_manager.get_room(room_key)
    room.add_connection(socket)
    logger.info(f"Inbox socket connected for organization {room_key}")
    
    try:
        while True:
            try:
                data = json.loads(await socket.receive_text())
            except json.JSONDecodeError:
                await socket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            
            msg_type = data.get("type") if isinstance(data, dict) else None
            if msg_type == "ping":
                await socket.send_json({"type": "pong"})
            else:
                await socket.send_json({"type": "error", "message": f"Unknown message type: {msg_type}"})
    
    except WebSocketDisconnect:
        logger.info(f"Inbox socket disconnected for organization {room_key}")
    
    except Exception as e:
        logger.exception(f"Inbox socket error for organization {room_key}: {e}")
    
    finally:
        room.remove_connection(socket)
        if room.connection_count == 0:
            room_manager.remove_room(room_key)


@websocket("/ws/emails/{organization_id:str}")
async def emails_websocket(socket: WebSocket, organization_id: str, session: AsyncSession) -> None:
    await serve_inbox(socket, organization_id, session)


# Export the websocket handler for use in routes
websocket_handler = emails_websocket
