from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from catalog import CatalogStore
from config import Settings
from database import Database, LocalStorage
from main import create_app
from orders import OrderBook
from seed_data import DEFAULT_PRODUCTS

ADMIN_EMAIL = "admin@test.local"
ADMIN_PASSWORD = "admin-pass-1"


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "products.json", seed_products=DEFAULT_PRODUCTS).load()


@pytest.fixture
def catalog(db):
    return CatalogStore(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def order_book(db, catalog, clock):
    return OrderBook(db, catalog, clock=clock)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        secret_key="test-secret",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def shopper_headers(client):
    res = client.post("/api/auth/register", json={
        "name": "Asha", "email": "asha@example.com", "password": "secret123",
    })
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}
