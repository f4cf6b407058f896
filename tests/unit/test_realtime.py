import json
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from litestar.exceptions import WebSocketDisconnect

from soluly.api.realtime import (
    EMAILS_CHANGED, EmailRoomManager, broadcast_emails_changed, room_manager, serve_inbox,
)


class FakeSocket:
    def __init__(self, fail=False, incoming=()):
        self.fail = fail
        self.sent = []
        self.incoming = list(incoming)
        self.accepted = False
        self.closed_with = None

    async def accept(self):
        self.accepted = True

    async def close(self, code=1000, reason=None):
        self.closed_with = code

    async def receive_text(self):
        if not self.incoming:
            raise WebSocketDisconnect(detail="client left", code=1000)
        return self.incoming.pop(0)

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


class JoiningSocket(FakeSocket):
    """Adds another socket to its room while its own send is in flight."""

    def __init__(self, room, newcomer):
        super().__init__()
        self.room = room
        self.newcomer = newcomer

    async def send_json(self, message):
        self.room.add_connection(self.newcomer)
        await super().send_json(message)


def fake_session(organization=None):
    return SimpleNamespace(get=AsyncMock(return_value=organization), close=AsyncMock())


def test_room_keys_are_case_insensitive():
    manager = EmailRoomManager()
    room = manager.get_room("ABC-123")
    assert manager.get_room("abc-123") is room
    manager.remove_room("Abc-123")
    assert manager.get_all_rooms() == {}


@pytest.mark.asyncio
async def test_broadcast_drops_failed_sockets():
    room = EmailRoomManager().get_room("org")
    healthy, broken = FakeSocket(), FakeSocket(fail=True)
    room.add_connection(healthy)
    room.add_connection(broken)

    await room.broadcast(EMAILS_CHANGED)

    assert healthy.sent == [{"type": "emails_changed"}]
    assert room.connection_count == 1


@pytest.mark.asyncio
async def test_broadcast_tolerates_socket_joining_mid_send():
    room = EmailRoomManager().get_room("org")
    newcomer = FakeSocket()
    room.add_connection(JoiningSocket(room, newcomer))

    await room.broadcast(EMAILS_CHANGED)

    assert room.connection_count == 2
    assert newcomer.sent == []


@pytest.mark.asyncio
async def test_broadcast_emails_changed_reaches_room():
    socket = FakeSocket()
    room = room_manager.get_room("org-broadcast")
    room.add_connection(socket)
    try:
        await broadcast_emails_changed("ORG-BROADCAST")
    finally:
        room_manager.remove_room("org-broadcast")
    assert socket.sent == [EMAILS_CHANGED]


@pytest.mark.asyncio
async def test_broadcast_without_listeners_cleans_up():
    await broadcast_emails_changed("nobody-listening")
    assert "nobody-listening" not in room_manager.get_all_rooms()


@pytest.mark.asyncio
async def test_unknown_organization_is_refused():
    socket = FakeSocket()
    organization_id = str(uuid.uuid4())

    await serve_inbox(socket, organization_id, fake_session())

    assert socket.accepted is False
    assert socket.closed_with == 1008
    assert organization_id not in room_manager.get_all_rooms()


@pytest.mark.asyncio
async def test_malformed_organization_id_is_refused():
    socket = FakeSocket()
    session = fake_session()

    await serve_inbox(socket, "not-a-uuid", session)

    assert socket.closed_with == 1008
    session.get.assert_not_awaited()


@pytest.mark.asyncio
async def test_known_organization_answers_ping_and_leaves_room():
    organization = SimpleNamespace(id=uuid.uuid4())
    socket = FakeSocket(incoming=[json.dumps({"type": "ping"}), "not json", json.dumps({"type": "dance"})])

    await serve_inbox(socket, str(organization.id).upper(), fake_session(organization))

    assert socket.accepted is True
    assert socket.sent == [
        {"type": "pong"},
        {"type": "error", "message": "Invalid JSON"},
        {"type": "error", "message": "Unknown message type: dance"},
    ]
    assert str(organization.id) not in room_manager.get_all_rooms()
