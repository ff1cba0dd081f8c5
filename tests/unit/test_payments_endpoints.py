"""
Payments (/api/pagos): registration, validation and monthly income.
"""
from decimal import Decimal

import pytest

from vozip.services.payment_service import PaymentService, normalize_month

pytestmark = pytest.mark.unit


@pytest.fixture
def payment_payload(make_client, catalogs):
    return {
        "client_id": make_client("Ana"),
        "payment_date": "2024-02-03",
        "month": "febrero",
        "year": 2024,
        "amount": "50000",
        "payment_method_id": catalogs["payment_method"],
    }


def test_add_payment_normalizes_month_and_snapshots_plan(client, admin_headers, payment_payload):
    response = client.post("/api/pagos/add", json=payment_payload, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["month"] == "FEBRERO"
    assert body["plan_name"] == "Hogar"
    assert body["plan_speed"] == "20MB"
    assert Decimal(str(body["tariff_value"])) == Decimal("50000")


def test_unknown_month_is_rejected(client, admin_headers, payment_payload):
    response = client.post(
        "/api/pagos/add", json={**payment_payload, "month": "FEBRUARY"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Mes inválido")


def test_non_positive_amount_is_rejected(client, admin_headers, payment_payload):
    response = client.post(
        "/api/pagos/add", json={**payment_payload, "amount": "0"}, headers=admin_headers
    )
    assert response.status_code == 400


def test_payment_for_unknown_client_is_404(client, admin_headers, payment_payload):
    response = client.post(
        "/api/pagos/add", json={**payment_payload, "client_id": 999}, headers=admin_headers
    )
    assert response.status_code == 404


def test_duplicate_period_is_accepted(client, admin_headers, payment_payload):
    first = client.post("/api/pagos/add", json=payment_payload, headers=admin_headers)
    second = client.post("/api/pagos/add", json=payment_payload, headers=admin_headers)
    assert first.status_code == second.status_code == 201


def test_client_payments_listing(client, admin_headers, payment_payload):
    client.post("/api/pagos/add", json=payment_payload, headers=admin_headers)
    rows = client.get(
        f"/api/pagos/cliente/{payment_payload['client_id']}", headers=admin_headers
    ).json()
    assert len(rows) == 1
    assert rows[0]["client_name"] == "Ana Cliente"
    assert rows[0]["payment_method_name"] == "Efectivo"


def test_update_and_delete_payment(client, admin_headers, payment_payload):
    payment_id = client.post(
        "/api/pagos/add", json=payment_payload, headers=admin_headers
    ).json()["id"]

    updated = client.put(
        f"/api/pagos/update/{payment_id}", json={"month": "marzo"}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["month"] == "MARZO"

    deleted = client.delete(f"/api/pagos/delete/{payment_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/pagos/{payment_id}", headers=admin_headers).status_code == 404


def test_monthly_income_has_twelve_months(db, make_client, make_payment):
    client_id = make_client("Ana")
    make_payment(client_id, "ENERO", 2024, Decimal("50000"))
    make_payment(client_id, "ENERO", 2024, Decimal("25.50"))
    make_payment(client_id, "MARZO", 2024, Decimal("100"))
    make_payment(client_id, "MARZO", 2023, Decimal("999"))

    with db.session() as session:
        report = PaymentService(session).monthly_income(2024)

    assert report["year"] == 2024
    assert len(report["months"]) == 12
    assert report["months"][0] == {
        "month": "ENERO",
        "month_number": 1,
        "total": Decimal("50025.50"),
        "payments": 2,
    }
    assert report["months"][1]["total"] == 0
    assert report["months"][2]["total"] == Decimal("100")
    assert report["total"] == Decimal("50125.50")


def test_monthly_income_endpoint(client, admin_headers):
    response = client.get("/api/pagos/ingresos-mensuales?anio=2024", headers=admin_headers)
    assert response.status_code == 200
    assert [m["month_number"] for m in response.json()["months"]] == list(range(1, 13))


def test_normalize_month():
    assert normalize_month(" diciembre ") == "DICIEMBRE"
    with pytest.raises(ValueError):
        normalize_month("13")
