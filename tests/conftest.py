"""
Pytest configuration and shared fixtures.

Every test gets its own application instance over an in-memory SQLite
database (StaticPool), bootstrapped exactly as in production: default
statuses, permission catalog and an admin user with every permission.
"""
import os

# El entorno de pruebas se fija ANTES de importar la aplicación
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["ADMIN_NATIONAL_ID"] = "0102030405"

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from vozip.core.config import get_settings

get_settings.cache_clear()

from vozip.core.rate_limit import limiter  # noqa: E402
from vozip.core.security import Principal, create_access_token, hash_password  # noqa: E402
from vozip.main import create_app  # noqa: E402
from vozip.models import (  # noqa: E402
    Client,
    Payment,
    PaymentMethod,
    Permission,
    Plan,
    Sector,
    ServiceType,
    Tariff,
    User,
    UserPermission,
)

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def app(settings):
    limiter.enabled = False
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client):
    """Database handle created by the app lifespan."""
    return client.app.state.db


@pytest.fixture
def admin_token(client) -> str:
    response = client.post(
        "/api/users/login", json={"user": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def admin_headers(admin_token) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def headers_for(settings):
    """Authorization header for an arbitrary identity, without touching the database."""

    def _headers_for(
        user_id: int, permissions: Iterable[str] = (), role: Optional[str] = None
    ) -> dict:
        principal = Principal(id=user_id, nombre="Test", funcion=role, permisos=list(permissions))
        return {"Authorization": f"Bearer {create_access_token(principal, settings)}"}

    return _headers_for


# ============================================================================
# Data Factories
# ============================================================================


@pytest.fixture
def make_user(db):
    def _make_user(
        username: str,
        password: str = "secret123",
        permissions: Iterable[str] = (),
        status_id: int = 1,
        role: Optional[str] = "Técnico",
        hashed_password: Optional[str] = None,
    ) -> int:
        with db.session() as session:
            user = User(
                national_id=f"ID-{username}",
                username=username,
                hashed_password=hashed_password or hash_password(password),
                first_name=username.capitalize(),
                role=role,
                status_id=status_id,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            for name in permissions:
                permission = session.exec(select(Permission).where(Permission.name == name)).one()
                session.add(UserPermission(user_id=user.id, permission_id=permission.id))
            session.commit()
            return user.id

    return _make_user


@pytest.fixture
def catalogs(db) -> dict:
    """One row of every catalog a client needs. Tariff value 50000."""
    with db.session() as session:
        rows = {
            "service_type": ServiceType(name="Fibra"),
            "plan": Plan(name="Hogar", speed="20MB"),
            "sector": Sector(name="Centro", description="Zona centro"),
            "tariff": Tariff(value=Decimal("50000")),
            "payment_method": PaymentMethod(name="Efectivo"),
        }
        for row in rows.values():
            session.add(row)
        session.commit()
        return {key: row.id for key, row in rows.items()}


@pytest.fixture
def client_payload(catalogs) -> dict:
    return {
        "first_name": "Ana",
        "last_name": "Pérez",
        "national_id": "0911111111",
        "phone": "0999999999",
        "address": "Av. Principal 123",
        "ip_address": "10.0.0.15",
        "installation_date": "2024-01-15",
        "status_id": 1,
        "service_type_id": catalogs["service_type"],
        "plan_id": catalogs["plan"],
        "sector_id": catalogs["sector"],
        "tariff_id": catalogs["tariff"],
    }


@pytest.fixture
def make_client(db, catalogs):
    def _make_client(
        first_name: str = "Ana",
        installation_date: date = date(2024, 1, 15),
        status_id: int = 1,
        tariff_id: Optional[int] = None,
    ) -> int:
        with db.session() as session:
            client = Client(
                first_name=first_name,
                last_name="Cliente",
                national_id=f"CI-{first_name}",
                phone="0999999999",
                address="Calle 1",
                installation_date=installation_date,
                status_id=status_id,
                service_type_id=catalogs["service_type"],
                plan_id=catalogs["plan"],
                sector_id=catalogs["sector"],
                tariff_id=tariff_id or catalogs["tariff"],
            )
            session.add(client)
            session.commit()
            session.refresh(client)
            return client.id

    return _make_client


@pytest.fixture
def make_payment(db, catalogs):
    def _make_payment(
        client_id: int,
        month: str,
        year: int,
        amount: Decimal = Decimal("50000"),
        payment_date: Optional[date] = None,
    ) -> int:
        with db.session() as session:
            payment = Payment(
                client_id=client_id,
                payment_date=payment_date or date(year, 1, 1),
                month=month,
                year=year,
                amount=amount,
                payment_method_id=catalogs["payment_method"],
            )
            session.add(payment)
            session.commit()
            session.refresh(payment)
            return payment.id

    return _make_payment
