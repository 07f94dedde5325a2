"""ASGI entrypoint: ``uvicorn twitter_clone.main:app``."""

from twitter_clone.core.app_factory import create_app

app = create_app()
