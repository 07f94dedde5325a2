"""Prometheus instrumentation plus a few domain counters.

HTTP metrics come from prometheus-fastapi-instrumentator and are exposed on
``/metrics``. Counters below are incremented by the services.
"""

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

tweets_created_total = Counter(
    "twitter_clone_tweets_created_total", "Tweets and replies created"
)
notifications_created_total = Counter(
    "twitter_clone_notifications_created_total",
    "Notification rows persisted",
    ["notification_type"],
)
hub_events_sent_total = Counter(
    "twitter_clone_hub_events_sent_total",
    "Realtime events delivered to connected sockets",
    ["event"],
)
hub_connections = Gauge(
    "twitter_clone_hub_connections", "Open realtime hub connections"
)

# Instrumentator registers collectors globally; guard against repeated app creation.
_metrics_configured = False


def setup_monitoring(app: FastAPI) -> None:
    """Instrument the app once per process and expose ``/metrics``."""
    global _metrics_configured
    if _metrics_configured or getattr(app.state, "metrics_enabled", False):
        return

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/livez", "/readyz", "/docs", "/openapi.json", "/ws"],
        env_var_name="ENABLE_METRICS",
        inprogress_name="twitter_clone_inprogress",
        inprogress_labels=True,
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, include_in_schema=False)

    app.state.metrics_enabled = True
    _metrics_configured = True
