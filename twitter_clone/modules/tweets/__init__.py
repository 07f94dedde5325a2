"""Tweets domain public exports."""

from .models import Bookmark, Hashtag, Like, Retweet, Tweet, TweetHashtag

__all__ = ["Tweet", "Hashtag", "TweetHashtag", "Like", "Retweet", "Bookmark"]
