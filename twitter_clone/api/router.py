"""Centralized API router registration.

Groups:
- Identity: registration/login and profiles.
- Social graph and content: follows, tweets, trending, bookmarks.
- Delivery: notifications, chat and the realtime hub.
"""

from fastapi import APIRouter

from twitter_clone.api import websocket
from twitter_clone.routers import auth, chat, follow, notifications, tweets, users

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)

api_router.include_router(follow.router)
api_router.include_router(tweets.router)

api_router.include_router(notifications.router)
api_router.include_router(chat.router)
api_router.include_router(websocket.router)
