"""Tweet endpoints: timeline, posting, replies, engagement toggles and discovery."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from twitter_clone import oauth2
from twitter_clone.core.cache.redis_cache import cache_manager
from twitter_clone.core.config import settings
from twitter_clone.core.database import get_db
from twitter_clone.core.middleware.rate_limit import limiter
from twitter_clone.modules.tweets import schemas, strategies
from twitter_clone.modules.tweets.presenter import (
    serialize_tweet_detail,
    serialize_tweets,
)
from twitter_clone.modules.tweets.service import TweetService
from twitter_clone.modules.users.models import User
from twitter_clone.modules.users.schemas import UserSummary

router = APIRouter(tags=["Tweets"])

TRENDING_CACHE_KEY = "trending:hashtags"


def get_tweet_service(db: Session = Depends(get_db)) -> TweetService:
    return TweetService(db)


def _viewer_id(user: Optional[User]) -> Optional[int]:
    return user.id if user else None


# ------------------------------------------------------------------ reads


@router.get("/tweets", response_model=List[schemas.TweetOut])
async def home_timeline(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(oauth2.get_optional_user),
):
    """Home timeline using the configured FEED_STRATEGY (all or following)."""
    strategy = strategies.get_retrieval_strategy(settings.feed_strategy)
    tweets = strategy.get_tweets(db, _viewer_id(current_user), skip=skip, limit=limit)
    return serialize_tweets(db, tweets, _viewer_id(current_user))


@router.get("/tweets/popular", response_model=List[schemas.TweetOut])
async def popular_tweets(
    db: Session = Depends(get_db),
    current_user: User = Depends(oauth2.get_current_user),
):
    """Most liked tweets, newest first among equal like counts."""
    tweets = strategies.MostLikedTweetsStrategy().get_tweets(
        db, settings.popular_tweets_limit
    )
    return serialize_tweets(db, tweets, current_user.id)


@router.get("/tweets/search", response_model=List[schemas.TweetOut])
async def search_tweets(
    q: str = Query("", max_length=256),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(oauth2.get_optional_user),
):
    """
    Search tweets.

    ``#tag`` queries match hashtags; anything else matches author usernames.
    An empty query returns every tweet.
    """
    tweets = strategies.search_tweets(db, q, skip=skip, limit=limit)
    return serialize_tweets(db, tweets, _viewer_id(current_user))


@router.get("/trending", response_model=schemas.TrendingOut)
async def trending(db: Session = Depends(get_db)):
    cached = await cache_manager.get(TRENDING_CACHE_KEY)
    if cached is not None:
        return schemas.TrendingOut(hashtags=cached)
    tags = strategies.trending_topics(db, settings.trending_topics_limit)
    await cache_manager.set(TRENDING_CACHE_KEY, tags)
    return schemas.TrendingOut(hashtags=tags)


@router.get("/bookmarks", response_model=List[schemas.TweetOut])
async def list_bookmarks(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    tweets = service.bookmarks(current_user, skip=skip, limit=limit)
    return serialize_tweets(db, tweets, current_user.id)


@router.get("/tweets/{tweet_id}", response_model=schemas.TweetDetailOut)
async def view_tweet(
    tweet_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    service: TweetService = Depends(get_tweet_service),
    current_user: Optional[User] = Depends(oauth2.get_optional_user),
):
    tweet, replies = service.view_tweet(tweet_id)
    return serialize_tweet_detail(db, tweet, replies, _viewer_id(current_user))


@router.get("/tweets/{tweet_id}/likes", response_model=List[UserSummary])
async def show_likes(
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
):
    return service.show_likes(tweet_id)


# ----------------------------------------------------------------- writes


@router.post(
    "/tweets", status_code=status.HTTP_201_CREATED, response_model=schemas.TweetCreateResponse
)
@limiter.limit("30/minute")
async def create_tweet(
    request: Request,
    payload: schemas.TweetCreate,
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    """
    Post a tweet.

    Hashtags are extracted and linked, every follower gets a notification and
    all connected clients receive a ``ReceiveTweet`` event.
    """
    tweet = await service.create_tweet(
        current_user, payload.content, parent_tweet_id=payload.parent_tweet_id
    )
    await cache_manager.delete(TRENDING_CACHE_KEY)
    return schemas.TweetCreateResponse(tweet_id=tweet.id)


@router.post(
    "/tweets/{tweet_id}/replies",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.TweetCreateResponse,
)
@limiter.limit("30/minute")
async def reply_to_tweet(
    request: Request,
    payload: schemas.ReplyCreate,
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    tweet = await service.reply(current_user, tweet_id, payload.content)
    await cache_manager.delete(TRENDING_CACHE_KEY)
    return schemas.TweetCreateResponse(tweet_id=tweet.id)


@router.delete("/tweets/{tweet_id}", response_model=schemas.ActionResponse)
async def delete_tweet(
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    service.delete_tweet(current_user, tweet_id)
    await cache_manager.delete(TRENDING_CACHE_KEY)
    return schemas.ActionResponse(message="Tweet deleted")


@router.post("/tweets/{tweet_id}/like", response_model=schemas.ActionResponse)
@limiter.limit("60/minute")
async def like_tweet(
    request: Request,
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    await service.like(current_user, tweet_id)
    return schemas.ActionResponse(message="Liked")


@router.delete("/tweets/{tweet_id}/like", response_model=schemas.ActionResponse)
async def unlike_tweet(
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    service.unlike(current_user, tweet_id)
    return schemas.ActionResponse(message="Unliked")


@router.post("/tweets/{tweet_id}/retweet", response_model=schemas.ActionResponse)
@limiter.limit("60/minute")
async def retweet(
    request: Request,
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    await service.retweet(current_user, tweet_id)
    return schemas.ActionResponse(message="Retweeted")


@router.delete("/tweets/{tweet_id}/retweet", response_model=schemas.ActionResponse)
async def undo_retweet(
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    service.unretweet(current_user, tweet_id)
    return schemas.ActionResponse(message="Retweet removed")


@router.post("/tweets/{tweet_id}/bookmark", response_model=schemas.ActionResponse)
@limiter.limit("60/minute")
async def bookmark_tweet(
    request: Request,
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    await service.bookmark(current_user, tweet_id)
    return schemas.ActionResponse(message="Bookmarked")


@router.delete("/tweets/{tweet_id}/bookmark", response_model=schemas.ActionResponse)
async def remove_bookmark(
    tweet_id: int = Path(..., gt=0),
    service: TweetService = Depends(get_tweet_service),
    current_user: User = Depends(oauth2.get_current_user),
):
    service.unbookmark(current_user, tweet_id)
    return schemas.ActionResponse(message="Bookmark removed")
