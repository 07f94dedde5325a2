"""Models package initialiser.

- Exposes the shared SQLAlchemy `Base`.
- Lazily exposes every domain model via module-level attribute access so importing
  `twitter_clone.core.database` (which pulls `Base`) doesn't eagerly import every model.
"""

from twitter_clone.models.base import Base

__all__ = ["Base"]


def __getattr__(name: str):
    """
    Lazily load aggregated model attributes to avoid circular imports during
    early DB setup (e.g., when twitter_clone.core.database imports Base).
    """
    import importlib

    _registry = importlib.import_module("twitter_clone.models.registry")

    if hasattr(_registry, name):
        return getattr(_registry, name)
    raise AttributeError(f"module 'twitter_clone.models' has no attribute {name!r}")


def __dir__():
    import importlib

    _registry = importlib.import_module("twitter_clone.models.registry")

    return sorted(set(list(globals().keys()) + list(_registry.__all__)))
