"""
Password hashing, bearer extraction, JWT issuance and permission checks.
"""
import hashlib
from datetime import timedelta

import pytest
from jose import jwt

from vozip.core.security import (
    PERMISSION_MODE_ALL,
    PERMISSION_MODE_ANY,
    ExpiredTokenError,
    InvalidTokenError,
    MalformedTokenError,
    MissingPrincipalError,
    MissingTokenError,
    PermissionDeniedError,
    Principal,
    check_permissions,
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    verify_and_update,
    verify_password,
)

pytestmark = pytest.mark.unit


class TestPasswords:
    def test_new_hashes_use_argon2(self):
        hashed = hash_password("s3creta")
        assert hashed.startswith("$argon2")
        assert verify_password("s3creta", hashed)
        assert not verify_password("otra", hashed)

    def test_legacy_sha256_is_verified_and_upgraded(self):
        legacy = hashlib.sha256(b"s3creta").hexdigest()
        valid, new_hash = verify_and_update("s3creta", legacy)
        assert valid is True
        assert new_hash.startswith("$argon2")

    def test_legacy_sha256_wrong_password(self):
        legacy = hashlib.sha256(b"s3creta").hexdigest()
        assert verify_and_update("otra", legacy) == (False, None)

    def test_empty_or_unknown_hash_is_rejected(self):
        assert verify_and_update("x", "") == (False, None)
        assert verify_and_update("x", "not-a-hash") == (False, None)


class TestBearerExtraction:
    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing(self, header):
        with pytest.raises(MissingTokenError) as exc:
            extract_bearer_token(header)
        assert exc.value.message == "Token no proporcionado"
        assert exc.value.status_code == 401

    @pytest.mark.parametrize("header", ["abc", "Basic abc", "Bearer", "Bearer a b", "Bearer  abc"])
    def test_malformed(self, header):
        with pytest.raises(MalformedTokenError) as exc:
            extract_bearer_token(header)
        assert exc.value.message == "Token no válido"
        assert exc.value.status_code == 401


class TestTokens:
    def test_round_trip_keeps_identity(self, settings):
        principal = Principal(
            id=7, nombre="Ana", apellidos="Pérez", funcion="Técnico", permisos=["clientes.leer"]
        )
        decoded = decode_access_token(create_access_token(principal, settings), settings)
        assert decoded == principal

    def test_expired(self, settings):
        token = create_access_token(
            Principal(id=1), settings, expires_delta=timedelta(seconds=-5)
        )
        with pytest.raises(ExpiredTokenError) as exc:
            decode_access_token(token, settings)
        assert exc.value.message == "Token expirado"
        assert exc.value.status_code == 401

    def test_wrong_signature(self, settings):
        token = jwt.encode({"id": 1}, "another-key", algorithm="HS256")
        with pytest.raises(InvalidTokenError) as exc:
            decode_access_token(token, settings)
        assert exc.value.message == "Token inválido o expirado"
        assert exc.value.status_code == 403

    def test_payload_without_identity(self, settings):
        token = jwt.encode({"nombre": "x"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        with pytest.raises(InvalidTokenError):
            decode_access_token(token, settings)

    def test_lifetime_comes_from_settings(self, settings):
        token = create_access_token(Principal(id=1), settings)
        claims = jwt.get_unverified_claims(token)
        assert "exp" in claims


class TestCheckPermissions:
    def test_any_mode_passes_with_one_match(self):
        principal = Principal(id=1, permisos=["clientes.leer"])
        assert check_permissions(
            principal, ["clientes.leer", "clientes.eliminar"], PERMISSION_MODE_ANY
        ) is principal

    def test_all_mode_requires_every_permission(self):
        principal = Principal(id=1, permisos=["clientes.leer"])
        with pytest.raises(PermissionDeniedError) as exc:
            check_permissions(principal, ["clientes.leer", "clientes.eliminar"], PERMISSION_MODE_ALL)
        body = exc.value.to_dict()
        assert body["permisosRequeridos"] == ["clientes.leer", "clientes.eliminar"]
        assert body["permisosUsuario"] == ["clientes.leer"]

    def test_single_string_requirement(self):
        with pytest.raises(PermissionDeniedError):
            check_permissions(Principal(id=1, permisos=[]), "pagos.leer")

    def test_missing_principal(self):
        with pytest.raises(MissingPrincipalError):
            check_permissions(None, ["pagos.leer"])

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            check_permissions(Principal(id=1, permisos=["a"]), ["a"], "some")

    @pytest.mark.parametrize("role,expected", [
        ("Administrador", True),
        ("Gerente", True),
        ("Admin", True),
        ("administrador", False),
        ("Técnico", False),
        (None, False),
    ])
    def test_admin_roles_are_exact(self, role, expected):
        assert Principal(id=1, funcion=role).is_admin is expected
