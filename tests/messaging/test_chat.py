"""Direct messages over HTTP and at the service layer."""
import pytest

from twitter_clone.core.exceptions import (
    ResourceNotFoundException,
    SelfActionException,
    ValidationException,
)
from twitter_clone.modules.messaging.models import ChatMessage
from twitter_clone.modules.messaging.service import MessageService
from twitter_clone.modules.notifications.models import Notification
from twitter_clone.modules.notifications.realtime import RECEIVE_MESSAGE, RECEIVE_NOTIFICATION
from tests.conftest import RecordingHub, auth_headers


def _send(client, sender, recipient_id, content):
    return client.post(
        "/chat/messages",
        json={"recipient_id": recipient_id, "content": content},
        headers=auth_headers(sender),
    )


def test_send_message(client, test_user, test_user2, session):
    res = _send(client, test_user, test_user2["id"], "hey bob")
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["message"]["sender_id"] == test_user["id"]
    assert body["message"]["recipient_id"] == test_user2["id"]
    assert body["message"]["content"] == "hey bob"

    stored = session.query(ChatMessage).one()
    assert stored.content == "hey bob"
    notification = session.query(Notification).one()
    assert notification.user_id == test_user2["id"]
    assert notification.notification_type == "message"


def test_send_message_errors(client, test_user):
    assert _send(client, test_user, 424242, "anyone?").status_code == 404
    assert _send(client, test_user, test_user["id"], "note to self").status_code == 400
    res = _send(client, test_user, 1, "   ")
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "validation_error"


def test_conversation_oldest_first(client, test_user, test_user2, test_user3):
    _send(client, test_user, test_user2["id"], "1")
    _send(client, test_user2, test_user["id"], "2")
    _send(client, test_user3, test_user["id"], "elsewhere")
    _send(client, test_user, test_user2["id"], "3")

    res = client.get(f"/chat/{test_user2['id']}", headers=auth_headers(test_user))
    assert res.status_code == 200
    assert [m["content"] for m in res.json()] == ["1", "2", "3"]

    assert client.get("/chat/99999", headers=auth_headers(test_user)).status_code == 404


def test_conversations_list_last_message_per_partner(client, test_user, test_user2, test_user3):
    _send(client, test_user, test_user2["id"], "hi bob")
    _send(client, test_user3, test_user["id"], "hi alice")
    _send(client, test_user2, test_user["id"], "hi back")

    res = client.get("/chat", headers=auth_headers(test_user))
    assert res.status_code == 200
    conversations = res.json()["conversations"]
    assert [c["partner"]["username"] for c in conversations] == ["bob", "carol"]
    assert [c["last_message"]["content"] for c in conversations] == ["hi back", "hi alice"]


def test_chat_requires_auth(client):
    assert client.get("/chat").status_code == 401


@pytest.mark.asyncio
async def test_service_pushes_to_recipient(session, make_user, hub):
    sender, recipient = make_user("sender"), make_user("recipient")
    message = await MessageService(session, hub=hub).send_message(sender, recipient.id, "hello")

    assert [(user_id, event) for user_id, event, _ in hub.sent] == [
        (recipient.id, RECEIVE_MESSAGE),
        (recipient.id, RECEIVE_NOTIFICATION),
    ]
    payload = hub.sent[0][2]
    assert payload["message"] == "hello"
    assert payload["username"] == "sender"
    assert payload["sender_id"] == sender.id
    assert payload["created_at"] == message.created_at


@pytest.mark.asyncio
async def test_service_keeps_message_when_push_fails(session, make_user):
    sender, recipient = make_user("sender"), make_user("recipient")
    await MessageService(session, hub=RecordingHub(fail=True)).send_message(
        sender, recipient.id, "still stored"
    )
    assert session.query(ChatMessage).count() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, target, exc",
    [("", "other", ValidationException), ("hi", "self", SelfActionException), ("hi", "missing", ResourceNotFoundException)],
)
async def test_service_validation(session, make_user, hub, content, target, exc):
    sender, other = make_user("sender"), make_user("other")
    recipient_id = {"other": other.id, "self": sender.id, "missing": 10_000}[target]
    with pytest.raises(exc):
        await MessageService(session, hub=hub).send_message(sender, recipient_id, content)
    assert session.query(ChatMessage).count() == 0
