"""
Delinquent-client report: service filtering/sorting and /api/clientes/morosos.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlmodel import select

from vozip.models import AuditLog, Tariff
from vozip.services.delinquency_service import DelinquencyService

pytestmark = pytest.mark.unit

TODAY = date(2024, 7, 20)


@pytest.fixture
def service(db, settings):
    with db.session() as session:
        yield DelinquencyService(session, settings)


def test_list_delinquent_skips_excluded_and_sorts_by_debt(service, make_client, make_payment):
    oldest = make_client("Oldest", installation_date=date(2024, 1, 15))
    recent = make_client("Recent", installation_date=date(2024, 4, 15))
    make_client("Suspended", installation_date=date(2024, 1, 15), status_id=2)
    make_client("Retired", installation_date=date(2024, 1, 15), status_id=3)
    current = make_client("Current", installation_date=date(2024, 1, 15))
    make_payment(current, "JULIO", 2024)

    rows = service.list_delinquent(3, today=TODAY)

    assert [r["client_id"] for r in rows] == [oldest, recent]
    assert rows[0]["unpaid_periods"] == 7
    assert rows[0]["amount_owed"] == Decimal("350000")
    assert rows[0]["sector"] == "Centro"
    assert rows[1]["unpaid_periods"] == 4


def test_list_delinquent_skips_client_without_readable_payments(service, make_client, make_payment):
    broken = make_client("Broken", installation_date=date(2024, 1, 15))
    make_payment(broken, "MES13", 2024)
    ok = make_client("Ok", installation_date=date(2024, 1, 15))

    rows = service.list_delinquent(3, today=TODAY)

    assert [r["client_id"] for r in rows] == [ok]


def test_zero_tariff_client_is_never_listed(db, service, make_client):
    with db.session() as session:
        free = Tariff(value=Decimal("0"))
        session.add(free)
        session.commit()
        free_id = free.id
    make_client("Free", installation_date=date(2024, 1, 15), tariff_id=free_id)

    assert service.list_delinquent(1, today=TODAY) == []


def test_threshold_below_one_is_rejected(service):
    with pytest.raises(ValueError):
        service.list_delinquent(0, today=TODAY)


def test_evaluate_reports_non_delinquent_client(service, make_client, make_payment):
    client_id = make_client("Ana", installation_date=date(2024, 1, 31))
    make_payment(client_id, "ENERO", 2024)

    row = service.evaluate(client_id, threshold=3, today=date(2024, 3, 15))

    assert row["unpaid_periods"] == 2
    assert row["is_delinquent"] is False


def test_evaluate_unknown_client(service):
    with pytest.raises(FileNotFoundError):
        service.evaluate(999, today=TODAY)


class TestDelinquencyEndpoints:
    def test_report_lists_client_and_writes_audit(self, client, db, admin_headers, make_client):
        client_id = make_client("Moroso", installation_date=date(2024, 1, 15))

        response = client.get("/api/clientes/morosos?meses=3", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["threshold"] == 3
        assert body["total"] == 1
        assert body["clients"][0]["client_id"] == client_id
        with db.session() as session:
            log = session.exec(select(AuditLog).where(AuditLog.module == "MOROSOS")).one()
        assert log.action == "EXPORTAR"
        assert log.user_id == 1

    def test_invalid_threshold_is_400(self, client, admin_headers):
        response = client.get("/api/clientes/morosos?meses=0", headers=admin_headers)
        assert response.status_code == 400

    def test_requires_permission(self, client, headers_for):
        response = client.get("/api/clientes/morosos", headers=headers_for(5, ["clientes.leer"]))
        assert response.status_code == 403
        assert response.json()["permisosRequeridos"] == ["morosos.leer"]

    def test_excel_export(self, client, admin_headers, make_client):
        make_client("Moroso", installation_date=date(2024, 1, 15))
        response = client.get("/api/clientes/morosos/excel", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert response.content[:2] == b"PK"

    def test_single_client_detail(self, client, admin_headers, make_client):
        client_id = make_client("Ana", installation_date=date(2024, 1, 15))
        response = client.get(f"/api/clientes/morosos/{client_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_delinquent"] is True

        assert client.get("/api/clientes/morosos/999", headers=admin_headers).status_code == 404

    def test_single_client_detail_is_audited(self, client, db, admin_headers, make_client):
        client_id = make_client("Ana", installation_date=date(2024, 1, 15))

        client.get(f"/api/clientes/morosos/{client_id}", headers=admin_headers)

        with db.session() as session:
            log = session.exec(select(AuditLog).where(AuditLog.module == "MOROSOS")).one()
        assert log.action == "EXPORTAR"
        assert log.description == f"Consulta de morosidad del cliente ID: {client_id}"
        assert log.user_id == 1
