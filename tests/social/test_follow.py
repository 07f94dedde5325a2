"""Follow graph endpoints and helpers."""
import pytest

from twitter_clone.modules.notifications.models import Notification
from twitter_clone.modules.social import graph
from twitter_clone.modules.social.models import UserFollower
from tests.conftest import auth_headers


def test_follow_user(client, test_user, test_user2, session):
    res = client.post(f"/follow/{test_user2['id']}", headers=auth_headers(test_user))
    assert res.status_code == 201
    assert res.json() == {"success": True, "message": "Followed"}

    edge = (
        session.query(UserFollower)
        .filter(
            UserFollower.follower_id == test_user["id"],
            UserFollower.following_id == test_user2["id"],
        )
        .first()
    )
    assert edge is not None

    notification = session.query(Notification).one()
    assert notification.user_id == test_user2["id"]
    assert notification.notification_type == "follow"
    assert notification.message == "alice started following you"


def test_cannot_follow_self(client, test_user):
    res = client.post(f"/follow/{test_user['id']}", headers=auth_headers(test_user))
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "You cannot follow yourself"


def test_cannot_follow_twice(client, test_user, test_user2):
    headers = auth_headers(test_user)
    client.post(f"/follow/{test_user2['id']}", headers=headers)
    res = client.post(f"/follow/{test_user2['id']}", headers=headers)
    assert res.status_code == 409


def test_follow_non_existent_user(client, test_user):
    res = client.post("/follow/9999", headers=auth_headers(test_user))
    assert res.status_code == 404


@pytest.mark.parametrize("invalid_id", [0, -1])
def test_invalid_user_id(client, test_user, invalid_id):
    res = client.post(f"/follow/{invalid_id}", headers=auth_headers(test_user))
    assert res.status_code == 422


def test_unauthorized_follow(client, test_user2):
    res = client.post(f"/follow/{test_user2['id']}")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Not authenticated"


def test_unfollow_user(client, test_user, test_user2, session):
    headers = auth_headers(test_user)
    client.post(f"/follow/{test_user2['id']}", headers=headers)

    res = client.delete(f"/follow/{test_user2['id']}", headers=headers)
    assert res.status_code == 200
    assert session.query(UserFollower).count() == 0

    res = client.delete(f"/follow/{test_user2['id']}", headers=headers)
    assert res.status_code == 404


def test_followers_and_following_lists(client, test_user, test_user2, test_user3):
    client.post(f"/follow/{test_user['id']}", headers=auth_headers(test_user2))
    client.post(f"/follow/{test_user['id']}", headers=auth_headers(test_user3))
    client.post(f"/follow/{test_user3['id']}", headers=auth_headers(test_user))

    followers = client.get(f"/users/{test_user['id']}/followers").json()
    assert [edge["user"]["username"] for edge in followers] == ["carol", "bob"]

    following = client.get(f"/users/{test_user['id']}/following").json()
    assert [edge["user"]["username"] for edge in following] == ["carol"]

    assert client.get("/users/9999/followers").status_code == 404


def test_graph_helpers(session, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    session.add_all(
        [
            UserFollower(follower_id=bob.id, following_id=alice.id),
            UserFollower(follower_id=carol.id, following_id=alice.id),
        ]
    )
    session.commit()

    assert graph.follower_ids(session, alice.id) == sorted([bob.id, carol.id])
    assert graph.follower_ids(session, bob.id) == []
    assert graph.is_following(session, bob.id, alice.id) is True
    assert graph.is_following(session, alice.id, bob.id) is False
    assert graph.count_followers(session, alice.id) == 2
    assert graph.count_following(session, carol.id) == 1
