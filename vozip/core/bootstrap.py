# vozip/core/bootstrap.py
import logging

from sqlmodel import Session, select

from ..db.engine import Database
from ..models.permission import Permission, UserPermission
from ..models.status import Status
from ..models.user import User
from .config import Settings
from .constants import DEFAULT_STATUSES, AdminRole, StatusId, default_permissions
from .security import hash_password

logger = logging.getLogger(__name__)


def seed_statuses(session: Session) -> int:
    created = 0
    for status_id, name in DEFAULT_STATUSES.items():
        if not session.get(Status, status_id.value):
            session.add(Status(id=status_id.value, name=name))
            created += 1
    session.commit()
    return created


def seed_permissions(session: Session) -> int:
    existing = {name.lower() for name in session.exec(select(Permission.name)).all()}
    created = 0
    for name, description in default_permissions().items():
        if name.lower() not in existing:
            session.add(Permission(name=name, description=description))
            created += 1
    session.commit()
    return created


def grant_all_permissions(session: Session, user: User) -> int:
    assigned = set(
        session.exec(
            select(UserPermission.permission_id).where(UserPermission.user_id == user.id)
        ).all()
    )
    granted = 0
    for permission in session.exec(select(Permission)).all():
        if permission.id not in assigned:
            session.add(UserPermission(user_id=user.id, permission_id=permission.id))
            granted += 1
    session.commit()
    return granted


def ensure_admin(session: Session, settings: Settings) -> None:
    """Crea el administrador desde el entorno si todavía no hay usuarios."""
    if session.exec(select(User)).first():
        logger.info("[Bootstrap] System already initialized (users found). Skipping admin creation.")
        return

    if not settings.admin_username or not settings.admin_password:
        logger.warning(
            "[Bootstrap] No users found and ADMIN_USERNAME/ADMIN_PASSWORD not set. "
            "No se podrá iniciar sesión hasta crear un usuario."
        )
        return

    admin = User(
        national_id=settings.admin_national_id,
        username=settings.admin_username,
        hashed_password=hash_password(settings.admin_password),
        first_name="Administrador",
        role=AdminRole.ADMINISTRADOR.value,
        status_id=StatusId.ACTIVO.value,
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    granted = grant_all_permissions(session, admin)
    logger.info(f"[Bootstrap] Admin '{admin.username}' creado con {granted} permisos.")


def bootstrap_system(db: Database, settings: Settings) -> None:
    """
    Idempotent Bootstrapping:
    1. Initializes DB tables (SQLModel).
    2. Seeds default statuses and the permission catalog.
    3. Creates the admin user from the environment if no user exists.
    """
    logger.info("[Bootstrap] Initializing database schema...")
    db.create_all()
    with db.session() as session:
        statuses = seed_statuses(session)
        permissions = seed_permissions(session)
        if statuses or permissions:
            logger.info(f"[Bootstrap] Sembrados {statuses} estados y {permissions} permisos.")
        ensure_admin(session, settings)
