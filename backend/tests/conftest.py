import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jewelbill import models  # noqa: F401 - register models
from jewelbill.api.deps import get_db
from jewelbill.db.base import Base
from jewelbill.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def customer(client):
    resp = client.post("/customers", json={
        "name": "Lakshmi Iyer",
        "email": "Lakshmi@Example.com",
        "phone": "9876543210",
        "address": {"city": "Chennai", "state": "Tamil Nadu"},
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def make_invoice(client, customer):
    """POST an invoice with one 10 g item at 60000/10 g and 100/g labour."""
    def _make(**overrides):
        payload = {
            "customer_id": customer["id"],
            "items": [{
                "description": "Bangle",
                "hsn_code": "7113",
                "gross_weight": 10,
                "less_weight": 0,
                "rate_per_ten_gram": 60000,
                "labour_charge_rate": 100,
            }],
            "cgst_rate": 1.5,
            "sgst_rate": 1.5,
        }
        payload.update(overrides)
        resp = client.post("/invoices", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make
