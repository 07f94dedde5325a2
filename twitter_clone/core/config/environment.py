"""Pick the settings class for the process from ``APP_ENV``."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict, Type

from .settings import Settings


class DevelopmentSettings(Settings):
    """Local runs: 500 responses expose the traceback."""

    environment: str = "development"


class ProductionSettings(Settings):
    """Default when ``APP_ENV`` is unset or unknown; HTTPS redirect is on."""

    environment: str = "production"


class TestSettings(Settings):
    """Test runs: the scheduler stays off and the test database is used."""

    environment: str = "test"

    def model_post_init(self, __context) -> None:
        super().model_post_init(__context)
        if not self.database_url:
            object.__setattr__(self, "database_url", self.test_database_url)


SETTINGS_BY_ENV: Dict[str, Type[Settings]] = {
    "development": DevelopmentSettings,
    "dev": DevelopmentSettings,
    "production": ProductionSettings,
    "prod": ProductionSettings,
    "test": TestSettings,
    "testing": TestSettings,
}


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("APP_ENV", "production").strip().lower()
    return SETTINGS_BY_ENV.get(env, ProductionSettings)()
