import itertools
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from carnival.core.config import Settings
from carnival.db.session import create_db_engine
from carnival.main import create_app
from carnival.seed import seed_database

PASSWORD = "Str0ng!Pass"


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def product_payload(category_id, **overrides):
    payload = {
        "title": "Gilles costume with hat",
        "description": "Complete Binche Gilles costume, worn twice, includes feathers.",
        "price": 120.5,
        "categoryId": category_id,
        "condition": "like-new",
        "size": "M",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings(tmp_path):
    config = Settings()
    config.DATABASE_URL = "sqlite://"
    config.JWT_SECRET = "test-secret"
    config.UPLOAD_DIR = str(tmp_path / "uploads")
    config.RATE_LIMIT_MAX = 10_000
    return config


@pytest.fixture
def engine(settings):
    return create_db_engine(settings)


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client, app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    return seed_database(db)


@pytest.fixture
def categories(client, seeded):
    return {c["slug"]: c for c in client.get("/api/categories").json()["categories"]}


@pytest.fixture
def register(client):
    counter = itertools.count(1)

    def _register(**overrides):
        n = next(counter)
        payload = {
            "email": f"member{n}@carnival.be",
            "password": PASSWORD,
            "firstName": "Jan",
            "lastName": "Peeters",
        }
        payload.update(overrides)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]

    return _register


@pytest.fixture
def listed_product(client, register, categories):
    """A product listed by a fresh seller; returns (seller token, seller, product)."""
    token, seller = register(firstName="Marie", lastName="Dubois")
    response = client.post(
        "/api/products",
        json=product_payload(categories["costumes"]["id"]),
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return token, seller, response.json()["product"]
