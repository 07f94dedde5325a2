"""Connection registry and the ``/ws`` hub endpoint."""
from datetime import datetime, timezone

import pytest
from fastapi import status
from starlette.websockets import WebSocketDisconnect

from twitter_clone.modules.notifications import realtime
from twitter_clone.modules.notifications.realtime import (
    RECEIVE_MESSAGE,
    RECEIVE_NOTIFICATION,
    RECEIVE_TWEET,
    ConnectionManager,
    build_frame,
    manager,
)
from tests.conftest import auth_headers


class FakeWebSocket:
    def __init__(self, broken: bool = False):
        self.accepted = False
        self.sent = []
        self.close_calls = []
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = ""):
        self.close_calls.append((code, reason))


def test_build_frame_encodes_payload():
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    frame = build_frame(RECEIVE_TWEET, {"id": 1, "created_at": stamp})
    assert frame == {
        "type": "ReceiveTweet",
        "payload": {"id": 1, "created_at": "2024-01-02T03:04:05+00:00"},
    }


@pytest.mark.asyncio
async def test_connect_send_and_disconnect():
    hub = ConnectionManager(max_connections_per_user=2)
    tab1, tab2 = FakeWebSocket(), FakeWebSocket()
    assert await hub.connect(tab1, 7) is True
    assert await hub.connect(tab2, 7) is True
    assert hub.connection_count(7) == 2

    delivered = await hub.send_event(7, RECEIVE_NOTIFICATION, {"message": "hi"})
    assert delivered == 2
    assert tab1.sent == tab2.sent == [{"type": "ReceiveNotification", "payload": {"message": "hi"}}]

    await hub.disconnect(tab1, 7)
    assert hub.connection_count(7) == 1
    await hub.disconnect(tab2, 7, reason="bye")
    assert hub.is_online(7) is False
    assert hub.metrics()["last_disconnect_reason"][7] == "bye"


@pytest.mark.asyncio
async def test_connection_cap_closes_with_policy_violation():
    hub = ConnectionManager(max_connections_per_user=1)
    await hub.connect(FakeWebSocket(), 3)
    extra = FakeWebSocket()

    assert await hub.connect(extra, 3) is False
    assert extra.close_calls == [(status.WS_1008_POLICY_VIOLATION, "socket limit exceeded")]
    assert hub.connection_count(3) == 1
    assert hub.last_disconnect_reason[3] == "limit_exceeded"


@pytest.mark.asyncio
async def test_send_to_offline_user_delivers_nothing():
    hub = ConnectionManager()
    assert await hub.send_event(99, RECEIVE_MESSAGE, {"message": "anyone?"}) == 0


@pytest.mark.asyncio
async def test_broadcast_reaches_everyone_and_prunes_broken_sockets():
    hub = ConnectionManager()
    healthy, other, broken = FakeWebSocket(), FakeWebSocket(), FakeWebSocket(broken=True)
    await hub.connect(healthy, 1)
    await hub.connect(other, 2)
    await hub.connect(broken, 2)

    delivered = await hub.broadcast_event(RECEIVE_TWEET, {"id": 5})

    assert delivered == 2
    assert healthy.sent[0]["type"] == "ReceiveTweet"
    assert other.sent[0]["payload"] == {"id": 5}
    assert hub.connection_count(2) == 1


@pytest.mark.asyncio
async def test_presence_is_mirrored_when_cache_enabled(monkeypatch):
    calls = []

    async def fake_set_with_tags(key, value, tags, ttl=None):
        calls.append((key, value["count"], tags, ttl))

    monkeypatch.setattr(realtime.cache_manager, "enabled", True)
    monkeypatch.setattr(realtime.cache_manager, "set_with_tags", fake_set_with_tags)

    hub = ConnectionManager(registry_ttl=30)
    socket = FakeWebSocket()
    await hub.connect(socket, 4)
    await hub.disconnect(socket, 4)

    assert calls == [
        ("presence:4", 1, ["presence", "user:4"], 30),
        ("presence:4", 0, ["presence", "user:4"], 30),
    ]


@pytest.mark.asyncio
async def test_clear_presence_invalidates_the_presence_tag(monkeypatch):
    cleared = []

    async def fake_invalidate(tag):
        cleared.append(tag)

    monkeypatch.setattr(realtime.cache_manager, "invalidate_by_tag", fake_invalidate)
    await ConnectionManager().clear_presence()
    assert cleared == []

    monkeypatch.setattr(realtime.cache_manager, "enabled", True)
    await ConnectionManager().clear_presence()
    assert cleared == ["presence"]


def _ws_url(user) -> str:
    token = auth_headers(user)["Authorization"].split(" ", 1)[1]
    return f"/ws?token={token}"


@pytest.mark.parametrize("path", ["/ws", "/ws?token=garbage"])
def test_websocket_rejects_missing_or_invalid_token(client, path):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(path) as websocket:
            websocket.receive_json()
    assert exc.value.code == 4401


def test_follower_receives_notification_and_everyone_receives_tweet(
    client, test_user, test_user2, test_user3
):
    client.post(f"/follow/{test_user['id']}", headers=auth_headers(test_user2))

    with client.websocket_connect(_ws_url(test_user2)) as follower_ws, client.websocket_connect(
        _ws_url(test_user3)
    ) as stranger_ws, client.websocket_connect(_ws_url(test_user)) as author_ws:
        res = client.post(
            "/tweets", json={"content": "live #now"}, headers=auth_headers(test_user)
        )
        tweet_id = res.json()["tweet_id"]

        notification = follower_ws.receive_json()
        assert notification["type"] == "ReceiveNotification"
        assert notification["payload"]["tweet_id"] == tweet_id
        assert notification["payload"]["message"] == "New tweet posted!"

        for ws in (follower_ws, stranger_ws, author_ws):
            frame = ws.receive_json()
            assert frame["type"] == "ReceiveTweet"
            assert frame["payload"]["id"] == tweet_id
            assert frame["payload"]["username"] == "alice"

        assert manager.connection_count(test_user2["id"]) == 1


def test_send_message_invocation(client, test_user, test_user2):
    with client.websocket_connect(_ws_url(test_user)) as sender_ws, client.websocket_connect(
        _ws_url(test_user2)
    ) as recipient_ws:
        sender_ws.send_json({"invoke": "SendMessage", "args": [test_user2["id"], "psst"]})

        message = recipient_ws.receive_json()
        assert message["type"] == "ReceiveMessage"
        assert message["payload"]["message"] == "psst"
        assert message["payload"]["username"] == "alice"
        assert message["payload"]["sender_id"] == test_user["id"]

        notification = recipient_ws.receive_json()
        assert notification["type"] == "ReceiveNotification"
        assert notification["payload"]["notification_type"] == "message"

    history = client.get(f"/chat/{test_user['id']}", headers=auth_headers(test_user2)).json()
    assert [m["content"] for m in history] == ["psst"]


def test_unknown_and_failing_invocations_get_error_frames(client, test_user):
    with client.websocket_connect(_ws_url(test_user)) as websocket:
        websocket.send_json({"invoke": "Shout", "args": []})
        frame = websocket.receive_json()
        assert frame["type"] == "Error"
        assert "Shout" in frame["payload"]["message"]

        websocket.send_json({"invoke": "SendMessage", "args": [test_user["id"], "me"]})
        frame = websocket.receive_json()
        assert frame == {"type": "Error", "payload": {"message": "You cannot message yourself"}}

        websocket.send_json({"invoke": "SendMessage", "args": ["only-one"]})
        assert websocket.receive_json()["type"] == "Error"
