"""App factory wiring, health probes and the generic failure envelope."""
import pytest
from fastapi import APIRouter
from sqlalchemy.exc import OperationalError

from twitter_clone.core import exceptions
from twitter_clone.core.error_handlers import create_error_response
from twitter_clone.main import app


def test_livez(client):
    res = client.get("/livez")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_readyz_reports_database(client):
    res = client.get("/readyz")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ready"
    assert body["details"]["database"] == "connected"
    assert body["details"]["redis"] == "skipped"


def test_request_id_is_echoed(client):
    res = client.get("/livez", headers={"X-Request-ID": "abc-123"})
    assert res.headers["X-Request-ID"] == "abc-123"
    assert client.get("/livez").headers["X-Request-ID"]


def test_metrics_endpoint(client):
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "twitter_clone_tweets_created_total" in res.text


def test_unknown_route_uses_failure_envelope(client):
    res = client.get("/definitely/not/here")
    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "http_404"
    assert body["path"] == "/definitely/not/here"
    assert "timestamp" in body


def test_unhandled_errors_become_500(session):
    router = APIRouter()

    @router.get("/_boom")
    async def boom():
        raise RuntimeError("kaboom")

    @router.get("/_db_boom")
    async def db_boom():
        raise OperationalError("SELECT 1", {}, Exception("db down"))

    app.include_router(router)
    from tests.testclient import TestClient

    with TestClient(app, raise_server_exceptions=False) as client:
        res = client.get("/_boom")
        assert res.status_code == 500
        assert res.json()["error"]["code"] == "internal_server_error"
        # test environment exposes the message
        assert res.json()["error"]["message"] == "kaboom"

        res = client.get("/_db_boom")
        assert res.status_code == 500
        assert res.json()["error"]["code"] == "database_error"


@pytest.mark.parametrize(
    "exc, status_code, code",
    [
        (exceptions.InvalidCredentialsException(), 401, "invalid_credentials"),
        (exceptions.OwnershipRequiredException("tweet"), 403, "permission_denied"),
        (exceptions.ResourceNotFoundException("Tweet", 3), 404, "resource_not_found"),
        (exceptions.ResourceAlreadyExistsException("Like"), 409, "resource_already_exists"),
        (exceptions.ValidationException("bad", field="content"), 422, "validation_error"),
        (exceptions.SelfActionException("follow"), 400, "self_action_not_allowed"),
    ],
)
def test_exception_taxonomy(exc, status_code, code):
    assert exc.status_code == status_code
    assert exc.error_code == code
    assert exc.detail["error_code"] == code


def test_not_found_details_carry_identifier():
    exc = exceptions.ResourceNotFoundException("Tweet", 3)
    assert exc.message == "Tweet not found"
    assert exc.details == {"identifier": "3"}


def test_authentication_errors_advertise_bearer():
    assert exceptions.InvalidTokenException().headers == {"WWW-Authenticate": "Bearer"}


def test_create_error_response_shape():
    response = create_error_response(409, "resource_conflict", "stale", {"a": 1}, path="/x")
    assert response.status_code == 409
    assert b'"success":false' in response.body
    assert b'"path":"/x"' in response.body
