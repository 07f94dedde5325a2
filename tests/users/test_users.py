"""Registration, login and profile endpoints."""
import pytest
from jose import jwt

from twitter_clone.core.config import settings
from twitter_clone.modules.users import schemas
from tests.conftest import auth_headers


def test_create_user(client):
    res = client.post(
        "/users",
        json={"username": "dave", "email": "dave@example.com", "password": "password123"},
    )
    assert res.status_code == 201
    new_user = schemas.UserOut(**res.json())
    assert new_user.username == "dave"
    assert new_user.email == "dave@example.com"
    assert new_user.bio == ""
    assert "hashed_password" not in res.json()


@pytest.mark.parametrize(
    "username, email",
    [("alice", "other@example.com"), ("someone", "alice@example.com"), ("ALICE", "x@example.com")],
)
def test_create_user_conflict(client, test_user, username, email):
    res = client.post(
        "/users", json={"username": username, "email": email, "password": "password123"}
    )
    assert res.status_code == 409
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "resource_already_exists"


def test_create_user_rejects_short_password(client):
    res = client.post(
        "/users", json={"username": "eve", "email": "eve@example.com", "password": "123"}
    )
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "validation_error"


@pytest.mark.parametrize("identifier", ["alice", "alice@example.com", "Alice"])
def test_login_user(client, test_user, identifier):
    res = client.post(
        "/login", data={"username": identifier, "password": test_user["password"]}
    )
    assert res.status_code == 200
    login_res = schemas.Token(**res.json())
    payload = jwt.decode(
        login_res.access_token, settings.secret_key, algorithms=[settings.algorithm]
    )
    assert payload["user_id"] == test_user["id"]
    assert login_res.token_type == "bearer"


@pytest.mark.parametrize(
    "identifier, password",
    [("alice", "wrongpassword"), ("nobody", "password123")],
)
def test_incorrect_login(client, test_user, identifier, password):
    res = client.post("/login", data={"username": identifier, "password": password})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "invalid_credentials"


def test_me_requires_token(client):
    res = client.get("/users/me")
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_me_rejects_garbage_token(client):
    res = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "invalid_token"


def test_profile_lists_tweets_retweets_and_counts(client, test_user, test_user2):
    alice, bob = auth_headers(test_user), auth_headers(test_user2)
    first = client.post("/tweets", json={"content": "first"}, headers=alice).json()
    second = client.post("/tweets", json={"content": "second"}, headers=alice).json()
    bobs = client.post("/tweets", json={"content": "bob speaks"}, headers=bob).json()
    client.post(f"/tweets/{bobs['tweet_id']}/retweet", headers=alice)
    client.post(f"/follow/{test_user['id']}", headers=bob)

    res = client.get(f"/users/{test_user['id']}", headers=bob)
    assert res.status_code == 200
    profile = res.json()
    assert profile["user"]["username"] == "alice"
    assert [t["id"] for t in profile["tweets"]] == [second["tweet_id"], first["tweet_id"]]
    assert [t["id"] for t in profile["retweets"]] == [bobs["tweet_id"]]
    assert profile["followers_count"] == 1
    assert profile["following_count"] == 0
    assert profile["is_following"] is True

    anonymous = client.get(f"/users/{test_user['id']}").json()
    assert anonymous["is_following"] is False


def test_profile_unknown_user(client):
    res = client.get("/users/99999")
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "User not found"


def test_edit_profile_keeps_old_tweet_usernames(client, test_user):
    headers = auth_headers(test_user)
    created = client.post("/tweets", json={"content": "before rename"}, headers=headers).json()

    res = client.put(
        "/users/me",
        json={"username": "alice2", "bio": "hello", "profile_picture": "/img/a.png"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["username"] == "alice2"
    assert res.json()["bio"] == "hello"

    tweet = client.get(f"/tweets/{created['tweet_id']}").json()
    assert tweet["username"] == "alice"


def test_edit_profile_conflict(client, test_user, test_user2):
    res = client.put(
        "/users/me", json={"email": "bob@example.com"}, headers=auth_headers(test_user)
    )
    assert res.status_code == 409
    assert res.json()["error"]["details"]["field"] == "email"


def test_follow_suggestions(client, test_user, test_user2, test_user3):
    assert client.get("/users/suggestions").json() == []

    res = client.get("/users/suggestions", headers=auth_headers(test_user))
    assert res.status_code == 200
    ids = {user["id"] for user in res.json()}
    assert ids == {test_user2["id"], test_user3["id"]}
