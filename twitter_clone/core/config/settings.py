"""Application settings loaded from environment with safe fallbacks.

Environment precedence:
- Loads `.env` from the repo root before reading process env vars.
- Most values are pulled straight from env; booleans go through `_env_flag` so `"0"/"false"` work.
- CORS is normalized from `CORS_ORIGINS` (comma-separated) with a conservative default allowlist.
- Redis is optional: absence keeps caching and presence mirroring disabled.

Key expectations (defaults in parentheses):
- `APP_ENV` controls settings class selection (`production` default).
- Database: `DATABASE_URL` or component parts (`DATABASE_*`), with `_test` suffix enforced in tests.
- TLS/hosts: `ALLOWED_HOSTS` (JSON or comma list), `FORCE_HTTPS` (true in production if unset).
- Tokens: `SECRET_KEY` / `ALGORITHM` (`HS256`) / `ACCESS_TOKEN_EXPIRE_MINUTES` (30).
- Feed: `FEED_STRATEGY` (`all`), `POPULAR_TWEETS_LIMIT` (10), `TRENDING_TOPICS_LIMIT` (3).
"""

import json
import logging
import os
from pathlib import Path
from typing import ClassVar, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# __file__ is twitter_clone/core/config/settings.py, so the repo root is three levels up.
BASE_DIR = Path(__file__).resolve().parents[3]


load_dotenv(BASE_DIR / ".env")

logger = logging.getLogger(__name__)

FEED_STRATEGIES = {"all", "following"}


def _env_flag(name: str, *, default: Optional[bool] = False) -> Optional[bool]:
    """
    Helper to parse boolean-like environment variables.
    """
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Behavior highlights:
    - Loads `.env` at repo root, then lets process env override.
    - Enforces safe DB URLs (prefers `DATABASE_URL`, ensures `_test` suffix for test DBs).
    - Feature toggles parsed via `_env_flag` to accept common truthy/falsey strings.
    - CORS/hosts normalized once to avoid mutation side effects in settings instances.
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: Optional[str] = os.getenv("DATABASE_URL")
    test_database_url: Optional[str] = os.getenv("TEST_DATABASE_URL")
    database_hostname: Optional[str] = os.getenv("DATABASE_HOSTNAME")
    database_port: str = os.getenv("DATABASE_PORT", "5432")
    database_password: Optional[str] = os.getenv("DATABASE_PASSWORD")
    database_name: Optional[str] = os.getenv("DATABASE_NAME")
    database_username: Optional[str] = os.getenv("DATABASE_USERNAME")
    database_ssl_mode: str = os.getenv("DATABASE_SSL_MODE", "require")
    environment: str = os.getenv("APP_ENV", "production")
    force_https: bool = False
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: Optional[str] = os.getenv("LOG_DIR", "logs")
    use_json_logs: bool = bool(_env_flag("USE_JSON_LOGS", default=True))
    # Accept raw strings from env to avoid JSON parse errors; normalized to lists in __init__
    allowed_hosts: Optional[str] = os.getenv("ALLOWED_HOSTS")
    cors_origins: Optional[str] = os.getenv("CORS_ORIGINS")

    secret_key: str = os.getenv("SECRET_KEY", "change-me-in-production")
    algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

    REDIS_URL: Optional[str] = os.getenv("REDIS_URL")

    feed_strategy: str = os.getenv("FEED_STRATEGY", "all")
    popular_tweets_limit: int = int(os.getenv("POPULAR_TWEETS_LIMIT", 10))
    trending_topics_limit: int = int(os.getenv("TRENDING_TOPICS_LIMIT", 3))
    follow_suggestions_limit: int = int(os.getenv("FOLLOW_SUGGESTIONS_LIMIT", 3))
    new_tweet_notification_message: str = os.getenv(
        "NEW_TWEET_NOTIFICATION_MESSAGE", "New tweet posted!"
    )
    hub_max_connections_per_user: int = int(
        os.getenv("HUB_MAX_CONNECTIONS_PER_USER", 5)
    )
    hub_presence_ttl: int = int(os.getenv("HUB_PRESENCE_TTL", 600))
    NOTIFICATION_RETENTION_DAYS: int = int(os.getenv("NOTIFICATION_RETENTION_DAYS", 90))

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        env_override = os.getenv("APP_ENV")
        if env_override:
            object.__setattr__(self, "environment", env_override)

        if not self.REDIS_URL:
            logger.warning("REDIS_URL is not set, caching and presence mirroring are disabled.")

        strategy = (self.feed_strategy or "all").lower()
        if strategy not in FEED_STRATEGIES:
            logger.warning("Unknown FEED_STRATEGY %r, falling back to 'all'", strategy)
            strategy = "all"
        object.__setattr__(self, "feed_strategy", strategy)

        cors_raw = self.cors_origins
        if cors_raw:
            origins = [
                origin.strip() for origin in cors_raw.split(",") if origin.strip()
            ]
        else:
            origins = [
                "https://example.com",
                "https://www.example.com",
            ]
        object.__setattr__(self, "cors_origins", origins)

        hosts_raw = self.allowed_hosts or os.getenv("ALLOWED_HOSTS", "")
        hosts: list[str]
        if hosts_raw:
            try:
                hosts = [h.strip() for h in json.loads(hosts_raw)]
            except (ValueError, TypeError):
                hosts = [h.strip() for h in str(hosts_raw).split(",") if h.strip()]
        else:
            hosts = ["localhost", "127.0.0.1", "testserver"]
        # Only force-add testserver when running tests to keep prod lists intact.
        if self.environment.lower() == "test" and "testserver" not in hosts:
            hosts.append("testserver")
        object.__setattr__(self, "allowed_hosts", hosts)

        env_force_https = os.getenv("FORCE_HTTPS")
        if env_force_https is not None and env_force_https.strip() != "":
            object.__setattr__(
                self,
                "force_https",
                env_force_https.lower() not in {"0", "false", "no", "off"},
            )
        elif self.environment.lower() == "production":
            object.__setattr__(self, "force_https", True)

    def get_database_url(self, *, use_test: bool = False) -> str:
        """Resolve the SQLAlchemy database URL for runtime or tests.

        Priority: explicit `DATABASE_URL` (or `_test` variant when requested),
        then composed Postgres parts, then `TEST_DATABASE_URL`, finally sqlite fallback.
        Enforces dedicated test DB names to avoid destructive writes to prod data.
        """
        if use_test:
            test_url = self._resolve_test_database_url()
            if test_url.startswith("sqlite"):
                return test_url
            if "_test" not in test_url:
                raise ValueError(
                    "Test database URL must point to a dedicated test database (contains '_test')."
                )
            return test_url

        if self.database_url:
            return self.database_url

        composed = self._compose_postgres_url(self.database_name)
        if composed:
            return composed

        if self.test_database_url:
            return self.test_database_url

        logger.warning("Database configuration is incomplete; using local SQLite.")
        return "sqlite:///./twitter_clone.db"

    def _compose_postgres_url(self, database_name: Optional[str]) -> Optional[str]:
        if not (
            self.database_hostname
            and self.database_username
            and self.database_password
            and database_name
        ):
            return None
        base_url = (
            f"postgresql+psycopg2://{self.database_username}:{self.database_password}"
            f"@{self.database_hostname}:{self.database_port}/{database_name}"
        )
        if self.database_ssl_mode:
            return f"{base_url}?sslmode={self.database_ssl_mode}"
        return base_url

    def _resolve_test_database_url(self) -> str:
        """
        Build a test database URL.
        Priority:
        1) Explicit TEST_DATABASE_URL env.
        2) Derive from DATABASE_URL with a *_test suffix (or reuse sqlite).
        3) Derive from Postgres components with a *_test suffix.
        4) Fallback to sqlite for ad-hoc local runs.
        """
        if self.test_database_url:
            return self.test_database_url

        if self.database_url:
            from sqlalchemy.engine import make_url

            url = make_url(self.database_url)
            if url.drivername.startswith("sqlite"):
                return str(url)
            db_name = url.database or ""
            suffix_name = db_name if db_name.endswith("_test") else f"{db_name}_test"
            return url.set(database=suffix_name).render_as_string(hide_password=False)

        if self.database_name:
            composed = self._compose_postgres_url(f"{self.database_name}_test")
            if composed:
                return composed

        return "sqlite:///./test.db"

    @property
    def redis_url(self) -> Optional[str]:
        """Accessor tolerant of a missing/empty REDIS_URL."""
        return getattr(self, "REDIS_URL", None) or None
