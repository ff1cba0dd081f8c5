"""
Client CRUD, search and export (/api/clientes).
"""
import pytest
from sqlmodel import select

from vozip.models import AuditLog

pytestmark = pytest.mark.unit


def test_create_then_read_round_trip(client, admin_headers, client_payload):
    created = client.post("/api/clientes/create", json=client_payload, headers=admin_headers)
    assert created.status_code == 201
    client_id = created.json()["id"]

    fetched = client.get(f"/api/clientes/{client_id}", headers=admin_headers)

    assert fetched.status_code == 200
    body = fetched.json()
    for key, value in client_payload.items():
        assert body[key] == value


def test_create_is_audited(client, db, admin_headers, client_payload):
    client.post("/api/clientes/create", json=client_payload, headers=admin_headers)
    with db.session() as session:
        log = session.exec(select(AuditLog).where(AuditLog.module == "CLIENTES")).one()
    assert log.action == "CREAR"
    assert log.new_data["national_id"] == client_payload["national_id"]


def test_create_with_unknown_catalog_is_400(client, admin_headers, client_payload):
    response = client.post(
        "/api/clientes/create", json={**client_payload, "plan_id": 999}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "El plan proporcionado no existe"


def test_create_with_blank_field_is_400(client, admin_headers, client_payload):
    response = client.post(
        "/api/clientes/create", json={**client_payload, "address": "  "}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Todos los campos son obligatorios"


def test_create_with_missing_field_is_400(client, admin_headers, client_payload):
    payload = dict(client_payload)
    del payload["installation_date"]
    response = client.post("/api/clientes/create", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Datos inválidos"


def test_listing_includes_catalog_names(client, admin_headers, client_payload):
    client.post("/api/clientes/create", json=client_payload, headers=admin_headers)
    rows = client.get("/api/clientes/all", headers=admin_headers).json()
    assert len(rows) == 1
    assert rows[0]["status_name"] == "activo"
    assert rows[0]["plan_name"] == "Hogar"
    assert rows[0]["sector_name"] == "Centro"


def test_search_by_partial_name(client, admin_headers, client_payload):
    client.post("/api/clientes/create", json=client_payload, headers=admin_headers)
    client.post(
        "/api/clientes/create",
        json={**client_payload, "first_name": "Bruno", "last_name": "Díaz", "national_id": "2"},
        headers=admin_headers,
    )

    found = client.get("/api/clientes/search?nombre=ana p", headers=admin_headers).json()
    assert [r["first_name"] for r in found] == ["Ana"]
    blank = client.get("/api/clientes/search?nombre=%20", headers=admin_headers)
    assert blank.status_code == 400


def test_missing_client_is_404(client, admin_headers):
    response = client.get("/api/clientes/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Cliente no encontrado"}


def test_update_client(client, admin_headers, client_payload):
    client_id = client.post(
        "/api/clientes/create", json=client_payload, headers=admin_headers
    ).json()["id"]

    response = client.put(
        f"/api/clientes/update/{client_id}", json={"phone": "0988888888"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["phone"] == "0988888888"
    assert response.json()["address"] == client_payload["address"]


def test_installation_date_is_locked_once_paid(client, admin_headers, make_client, make_payment):
    client_id = make_client("Ana")
    make_payment(client_id, "ENERO", 2024)

    response = client.put(
        f"/api/clientes/update/{client_id}",
        json={"installation_date": "2024-02-01"},
        headers=admin_headers,
    )

    assert response.status_code == 409


def test_delete_client_with_payments_is_409(client, admin_headers, make_client, make_payment):
    client_id = make_client("Ana")
    make_payment(client_id, "ENERO", 2024)

    response = client.delete(f"/api/clientes/delete/{client_id}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["pagosAsociados"] == 1


def test_delete_client(client, admin_headers, make_client):
    client_id = make_client("Ana")
    response = client.delete(f"/api/clientes/delete/{client_id}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/clientes/{client_id}", headers=admin_headers).status_code == 404


def test_export_excel(client, admin_headers, make_client):
    make_client("Ana")
    response = client.get("/api/clientes/export/excel", headers=admin_headers)
    assert response.status_code == 200
    assert "attachment" in response.headers["content-disposition"]


def test_listing_requires_read_permission(client, headers_for):
    response = client.get("/api/clientes/all", headers=headers_for(9, ["pagos.leer"]))
    assert response.status_code == 403
    assert response.json()["message"] == "No tienes permisos suficientes para realizar esta acción"


@pytest.mark.parametrize("field", ["status_id", "installation_date", "tariff_id", "plan_id"])
def test_update_rejects_null_required_field(client, admin_headers, make_client, field):
    client_id = make_client("Ana")

    response = client.put(
        f"/api/clientes/update/{client_id}", json={field: None}, headers=admin_headers
    )

    assert response.status_code == 400
    assert field in response.json()["message"]
    assert client.get(f"/api/clientes/{client_id}", headers=admin_headers).json()[field] is not None


def test_null_installation_date_does_not_bypass_payment_lock(
    client, admin_headers, make_client, make_payment
):
    client_id = make_client("Ana")
    make_payment(client_id, "ENERO", 2024)

    response = client.put(
        f"/api/clientes/update/{client_id}",
        json={"installation_date": None},
        headers=admin_headers,
    )

    assert response.status_code == 400
