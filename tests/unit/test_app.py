"""
Application wiring: bootstrap, error envelopes and security headers.
"""
import pytest
from sqlmodel import select

from vozip.core.bootstrap import bootstrap_system
from vozip.core.constants import default_permissions
from vozip.models import Permission, User, UserPermission

pytestmark = pytest.mark.unit


def test_health_and_security_headers(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_unknown_route_uses_message_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}


def test_bootstrap_creates_admin_with_every_permission(db):
    with db.session() as session:
        admins = session.exec(select(User)).all()
        assert [u.username for u in admins] == ["admin"]
        granted = session.exec(
            select(UserPermission).where(UserPermission.user_id == admins[0].id)
        ).all()
        assert len(granted) == len(default_permissions())


def test_bootstrap_is_idempotent(db, settings):
    bootstrap_system(db, settings)
    bootstrap_system(db, settings)
    with db.session() as session:
        assert len(session.exec(select(Permission)).all()) == len(default_permissions())
        assert len(session.exec(select(User)).all()) == 1
