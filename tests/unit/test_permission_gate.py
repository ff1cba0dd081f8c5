"""
Authentication and authorization dependencies (PermissionChecker, RoleChecker).
"""
from datetime import timedelta

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from vozip.core.security import Principal, create_access_token
from vozip.core.users import PermissionChecker, get_current_principal, require_admin

pytestmark = pytest.mark.unit


@pytest.fixture
def gate_client():
    app = FastAPI()

    @app.get("/any")
    def any_route(p: Principal = Depends(PermissionChecker(["clientes.leer", "clientes.eliminar"]))):
        return {"id": p.id}

    @app.get("/all")
    def all_route(
        p: Principal = Depends(PermissionChecker(["clientes.leer", "clientes.eliminar"], mode="all"))
    ):
        return {"id": p.id}

    @app.get("/admin")
    def admin_route(p: Principal = Depends(require_admin)):
        return {"id": p.id}

    @app.get("/me")
    def me_route(p: Principal = Depends(get_current_principal)):
        return p.model_dump()

    return TestClient(app)


def _headers(settings, permissions=(), role=None, expires_delta=None):
    principal = Principal(id=3, funcion=role, permisos=list(permissions))
    token = create_access_token(principal, settings, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


def test_any_of_passes_with_single_permission(gate_client, settings):
    response = gate_client.get("/any", headers=_headers(settings, ["clientes.leer"]))
    assert response.status_code == 200
    assert response.json() == {"id": 3}


def test_all_of_denies_partial_permissions(gate_client, settings):
    response = gate_client.get("/all", headers=_headers(settings, ["clientes.leer"]))
    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["permisosRequeridos"] == ["clientes.leer", "clientes.eliminar"]
    assert detail["permisosUsuario"] == ["clientes.leer"]


def test_all_of_passes_with_every_permission(gate_client, settings):
    headers = _headers(settings, ["clientes.leer", "clientes.eliminar"])
    assert gate_client.get("/all", headers=headers).status_code == 200


@pytest.mark.parametrize("header,status,message", [
    (None, 401, "Token no proporcionado"),
    ("Token abc", 401, "Token no válido"),
    ("Bearer not-a-jwt", 403, "Token inválido o expirado"),
])
def test_token_failures(gate_client, header, status, message):
    headers = {"Authorization": header} if header else {}
    response = gate_client.get("/any", headers=headers)
    assert response.status_code == status
    assert response.json()["detail"] == message


def test_expired_token(gate_client, settings):
    headers = _headers(settings, ["clientes.leer"], expires_delta=timedelta(seconds=-1))
    response = gate_client.get("/any", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expirado"


def test_role_gate(gate_client, settings):
    assert gate_client.get("/admin", headers=_headers(settings, role="Gerente")).status_code == 200
    response = gate_client.get("/admin", headers=_headers(settings, role="Técnico"))
    assert response.status_code == 403
    assert response.json()["detail"] == "Esta acción requiere permisos de administrador"


def test_principal_is_exposed(gate_client, settings):
    response = gate_client.get("/me", headers=_headers(settings, ["pagos.leer"]))
    assert response.json()["permisos"] == ["pagos.leer"]


def test_missing_principal_is_server_error():
    with pytest.raises(HTTPException) as exc:
        PermissionChecker(["pagos.leer"])(principal=None)
    assert exc.value.status_code == 500
    assert exc.value.detail == "Error al verificar permisos"
