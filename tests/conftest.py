import httpx
import pytest

from app import create_app
from config import TestConfig
from extensions import db
from local_store import LocalStore
from seed_data import seed_database


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(app):
    seed_database()
    return app


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "local_store.json"))


@pytest.fixture
def flask_transport(client):
    """httpx transport that forwards requests into the Flask test client."""

    def handler(request: httpx.Request) -> httpx.Response:
        resp = client.open(
            request.url.path,
            method=request.method,
            data=request.content,
            headers={"Content-Type": "application/json"},
        )
        return httpx.Response(resp.status_code, content=resp.data, headers={"Content-Type": "application/json"})

    return httpx.MockTransport(handler)


@pytest.fixture
def down_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.MockTransport(handler)
