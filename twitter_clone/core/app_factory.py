"""Application factory helpers to keep main.py lightweight."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from twitter_clone.api import api_router
from twitter_clone.core.cache.redis_cache import cache_manager
from twitter_clone.core.config import settings
from twitter_clone.core.database import get_db
from twitter_clone.core.error_handlers import register_exception_handlers
from twitter_clone.core.logging_config import setup_logging
from twitter_clone.core.middleware import LoggingMiddleware, limiter
from twitter_clone.core.monitoring import setup_monitoring
from twitter_clone.core.scheduling import start_scheduler
from twitter_clone.modules.notifications.realtime import manager

logger = logging.getLogger(__name__)


def _configure_app(app: FastAPI) -> None:
    allowed_hosts = settings.allowed_hosts or ["*"]
    if allowed_hosts != ["*"]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)

    if settings.force_https:
        app.add_middleware(HTTPSRedirectMiddleware)

    app.add_middleware(LoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)


def _register_routes(app: FastAPI) -> None:
    @app.get("/livez", tags=["Health"])
    async def livez():
        return {"status": "ok"}

    @app.get("/readyz", tags=["Health"])
    async def readyz(db: Session = Depends(get_db)):
        health_status = {"database": "unknown", "redis": "skipped"}
        is_ready = True

        try:
            db.execute(text("SELECT 1"))
            health_status["database"] = "connected"
        except Exception as e:
            logger.error(f"Readiness check failed (Database): {e}")
            health_status["database"] = "disconnected"
            is_ready = False

        if settings.redis_url:
            try:
                if not cache_manager.redis:
                    raise RuntimeError("client not initialised")
                await cache_manager.redis.ping()
                health_status["redis"] = "connected"
            except Exception as e:
                logger.error(f"Readiness check failed (Redis): {e}")
                health_status["redis"] = "disconnected"
                is_ready = False

        if not is_ready:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=str(health_status),
            )
        return {"status": "ready", "details": health_status}


def _lifespan_factory():
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.connection_manager = manager
        await cache_manager.init_cache()
        scheduler = start_scheduler()
        app.state.scheduler = scheduler
        yield
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        await manager.clear_presence()
        await cache_manager.close()

    return lifespan


def create_app() -> FastAPI:
    """
    Application Factory to create and configure the FastAPI application.
    Integrates Logging, Error Handling, Rate Limiting, and Middleware.
    """
    setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        app_name="twitter_clone",
        use_json=settings.use_json_logs,
        use_colors=True,
    )

    app = FastAPI(
        title="Twitter Clone API",
        description="Tweets, follows, notifications and direct messages with a realtime hub",
        version="1.0.0",
        lifespan=_lifespan_factory(),
        default_response_class=ORJSONResponse,
    )
    app.state.environment = settings.environment
    app.state.limiter = limiter

    _configure_app(app)
    _register_routes(app)
    register_exception_handlers(app)
    setup_monitoring(app)

    logger.info("Application startup complete")
    return app


__all__ = ["create_app"]
