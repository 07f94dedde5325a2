"""Timeline strategies, popular tweets, search dispatch and trending topics."""
import pytest

from twitter_clone.core.config import settings
from twitter_clone.modules.social.models import UserFollower
from twitter_clone.modules.tweets import strategies
from twitter_clone.modules.tweets.models import Hashtag, Like, Tweet, TweetHashtag
from tests.conftest import auth_headers


def _tweet(session, user, content, tags=()):
    tweet = Tweet(user_id=user.id, username=user.username, content=content)
    session.add(tweet)
    session.flush()
    for tag in tags:
        hashtag = session.query(Hashtag).filter(Hashtag.tag == tag).first()
        if hashtag is None:
            hashtag = Hashtag(tag=tag)
            session.add(hashtag)
            session.flush()
        session.add(TweetHashtag(tweet_id=tweet.id, hashtag_id=hashtag.id))
    session.commit()
    return tweet


@pytest.fixture
def graph(session, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    session.add(UserFollower(follower_id=alice.id, following_id=bob.id))
    session.commit()
    tweets = {
        "alice": _tweet(session, alice, "alice here #python", tags=["python"]),
        "bob": _tweet(session, bob, "bob here #python #sql", tags=["python", "sql"]),
        "carol": _tweet(session, carol, "carol here #rust", tags=["rust"]),
    }
    return {"alice": alice, "bob": bob, "carol": carol, "tweets": tweets}


def test_all_tweets_strategy_newest_first(session, graph):
    tweets = strategies.AllTweetsStrategy().get_tweets(session, graph["alice"].id)
    assert [t.username for t in tweets] == ["carol", "bob", "alice"]


def test_following_strategy_includes_own_and_followed(session, graph):
    tweets = strategies.FollowingTweetsStrategy().get_tweets(session, graph["alice"].id)
    assert [t.username for t in tweets] == ["bob", "alice"]


def test_following_strategy_anonymous_falls_back_to_all(session, graph):
    tweets = strategies.FollowingTweetsStrategy().get_tweets(session, None)
    assert len(tweets) == 3


def test_unknown_strategy_name_defaults_to_all():
    assert isinstance(strategies.get_retrieval_strategy("nope"), strategies.AllTweetsStrategy)
    assert isinstance(
        strategies.get_retrieval_strategy("following"), strategies.FollowingTweetsStrategy
    )


def test_most_liked_orders_by_likes_then_newest(session, graph):
    tweets = graph["tweets"]
    for user in (graph["alice"], graph["bob"]):
        session.add(Like(user_id=user.id, tweet_id=tweets["alice"].id))
    session.add(Like(user_id=graph["carol"].id, tweet_id=tweets["bob"].id))
    session.commit()

    popular = strategies.MostLikedTweetsStrategy().get_tweets(session, limit=10)
    assert [t.username for t in popular] == ["alice", "bob", "carol"]

    assert len(strategies.MostLikedTweetsStrategy().get_tweets(session, limit=2)) == 2


def test_most_liked_empty(session):
    assert strategies.MostLikedTweetsStrategy().get_tweets(session, limit=10) == []


@pytest.mark.parametrize(
    "query, expected",
    [("#python", strategies.HashtagSearch), ("  #x", strategies.HashtagSearch), ("bob", strategies.UsernameSearch)],
)
def test_select_search_strategy(query, expected):
    assert isinstance(strategies.select_search_strategy(query), expected)


def test_hashtag_search_ignores_case_and_hash(session, graph):
    results = strategies.search_tweets(session, "#PYTHON")
    assert {t.username for t in results} == {"alice", "bob"}
    assert strategies.search_tweets(session, "#missing") == []


def test_username_search_contains_case_insensitive(session, graph):
    assert [t.username for t in strategies.search_tweets(session, "CAR")] == ["carol"]
    assert strategies.search_tweets(session, "100%") == []


def test_empty_search_returns_everything(session, graph):
    assert len(strategies.search_tweets(session, "")) == 3
    assert len(strategies.search_tweets(session, "   ")) == 3


def test_search_paginates(session, graph):
    page = strategies.search_tweets(session, "#python", skip=1, limit=1)
    assert [t.username for t in page] == ["alice"]
    assert [t.username for t in strategies.search_tweets(session, "", limit=1)] == ["carol"]


def test_trending_topics_ordered_by_link_count(session, graph):
    assert strategies.trending_topics(session, 3) == ["python", "rust", "sql"]
    assert strategies.trending_topics(session, 1) == ["python"]


def test_timeline_endpoint_uses_configured_strategy(client, test_user, test_user2, test_user3, monkeypatch):
    alice, bob, carol = (auth_headers(u) for u in (test_user, test_user2, test_user3))
    client.post("/tweets", json={"content": "from bob"}, headers=bob)
    client.post("/tweets", json={"content": "from carol"}, headers=carol)
    client.post(f"/follow/{test_user2['id']}", headers=alice)

    everything = client.get("/tweets", headers=alice).json()
    assert [t["username"] for t in everything] == ["carol", "bob"]

    monkeypatch.setattr(settings, "feed_strategy", "following")
    following = client.get("/tweets", headers=alice).json()
    assert [t["username"] for t in following] == ["bob"]


def test_popular_endpoint_requires_auth(client, test_user):
    assert client.get("/tweets/popular").status_code == 401
    res = client.get("/tweets/popular", headers=auth_headers(test_user))
    assert res.status_code == 200
    assert res.json() == []


def test_search_and_trending_endpoints(client, test_user, test_user2):
    alice, bob = auth_headers(test_user), auth_headers(test_user2)
    client.post("/tweets", json={"content": "#fastapi rocks"}, headers=alice)
    client.post("/tweets", json={"content": "#fastapi and #sqlalchemy"}, headers=bob)

    res = client.get("/tweets/search", params={"q": "#FastAPI"})
    assert res.status_code == 200
    assert len(res.json()) == 2
    res = client.get("/tweets/search", params={"q": "#FastAPI", "limit": 1})
    assert [t["username"] for t in res.json()] == ["bob"]

    res = client.get("/tweets/search", params={"q": "bo"})
    assert [t["username"] for t in res.json()] == ["bob"]

    trending = client.get("/trending").json()
    assert trending["hashtags"] == ["fastapi", "sqlalchemy"]
