import os
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

# keep the application's own engine off the local invoice.db file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from invoice_api import models, repositories, services
from invoice_api.database import get_session
from invoice_api.main import app


@pytest.fixture
def engine():
    """A fresh in-memory SQLite database shared by every session of a test."""
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(session):
    """Two companies, one customer each, and a user of the first company."""
    companies = repositories.CompanyRepository(session)
    customers = repositories.CustomerRepository(session)
    acme = companies.create(models.Company(guid="company-acme", corporate_name="Acme"))
    globex = companies.create(models.Company(guid="company-globex", corporate_name="Globex"))
    acme_customer = customers.create(models.Customer(guid="customer-acme", company_id=acme.id, corporate_name="Acme Client"))
    globex_customer = customers.create(models.Customer(guid="customer-globex", company_id=globex.id, corporate_name="Globex Client"))
    user = services.AuthService(session).register(acme.guid, "Alice", "alice@acme.test", "s3cret")
    return SimpleNamespace(
        acme=acme,
        globex=globex,
        acme_customer=acme_customer,
        globex_customer=globex_customer,
        user=user,
        email="alice@acme.test",
        password="s3cret",
    )


@pytest.fixture
def auth_headers(client, seeded):
    r = client.post('/auth/login', json={'email': seeded.email, 'password': seeded.password})
    assert r.status_code == 200
    return {'Authorization': f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def add_invoice(session):
    """Insert an invoice row directly, bypassing the service layer."""
    def _add(company, customer, payment_date: datetime, status: str = "unprocessed", payment: int = 10000):
        row = models.Invoice(
            guid=str(uuid.uuid4()),
            company_id=company.id,
            customer_id=customer.id,
            publish_date=datetime(2024, 4, 1, tzinfo=timezone.utc),
            payment=payment,
            commission_tax=400,
            commission_tax_rate=0.04,
            consumption_tax=40,
            tax_rate=0.1,
            billing_amount=payment + 440,
            payment_date=repositories.as_utc(payment_date),
            status=status,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
    return _add
